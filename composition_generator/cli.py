"""Command line helpers for Composition Generator.

Modification summary
--------------------
* Options are layered: built-in defaults, then the JSON settings file, then
  explicit command line flags.
* ``--seed`` drives a dedicated ``random.Random`` instance passed through the
  whole pipeline so a seed reproduces a composition exactly.
* ``--save-settings`` persists the effective options for the next run.

The ``run_cli`` function parses command line arguments, generates a
composition and writes it as JSON to ``--output`` (or standard output).
:func:`main` configures logging and delegates to ``run_cli``.

Example
-------
Running ``python -m composition_generator --key "A minor" --bars 8 \
    --structure intro-verse-chorus-outro --seed 3 --output song.json`` writes
a sectioned composition in A minor to ``song.json``.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from . import DEFAULT_SETTINGS_FILE, load_settings, save_settings
from .bass import BassPattern
from .composition import CompositionSettings, generate_composition, randomize_settings
from .dynamics import Articulation, Dynamics
from .motif import MotifVariation
from .progression import available_progressions
from .rhythm_engine import ContourType, RhythmPattern
from .scales import available_keys, available_modes
from .utils import validate_settings

__all__ = ["build_parser", "run_cli", "main"]


def _choices(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a chord progression, melody and bass line as JSON."
    )
    parser.add_argument("--list-keys", action="store_true", help="List example keys and supported modes, then exit")
    parser.add_argument("--list-progressions", action="store_true", help="List named progressions and exit")
    parser.add_argument("--key", type=str, help='Key as tonic and mode, e.g. "C major" or "F# dorian".')
    parser.add_argument("--tempo", type=int, help="Tempo in beats per minute.")
    parser.add_argument("--bars", type=int, help="Number of bars for an unsectioned composition.")
    parser.add_argument("--progression", type=str, help='Progression name or degree list such as "ii-V-I".')
    parser.add_argument("--verse-progression", type=str, help="Progression used by verse sections.")
    parser.add_argument("--chorus-progression", type=str, help="Progression used by chorus sections.")
    parser.add_argument("--rhythm", choices=_choices(RhythmPattern), help="Melody rhythm pattern.")
    parser.add_argument("--contour", choices=_choices(ContourType), help="Melodic contour.")
    parser.add_argument("--complexity", type=int, help="Deviation from the contour, 1-10.")
    parser.add_argument("--motif", dest="use_motif", action="store_true", default=None, help="Build the melody from a repeated motif.")
    parser.add_argument("--variation", choices=_choices(MotifVariation), help="Motif variation applied on alternate bars.")
    parser.add_argument("--articulation", choices=_choices(Articulation), help="Melody articulation.")
    parser.add_argument("--dynamics", choices=_choices(Dynamics), help="Melody dynamics curve.")
    parser.add_argument("--no-humanize", dest="humanize", action="store_false", default=None, help="Disable timing and velocity randomization.")
    parser.add_argument("--voice-leading", action="store_true", default=None, help="Re-voice chords for minimal movement.")
    parser.add_argument("--inversion", type=int, help="Static inversion applied to every chord (ignored with --voice-leading).")
    parser.add_argument("--extended", dest="extended_chords", action="store_true", default=None, help="Use seventh chords.")
    parser.add_argument("--chord-duration", type=float, help="Length of each chord in bars.")
    parser.add_argument("--structure", type=str, help='Section structure such as "intro-verse-chorus-outro".')
    parser.add_argument("--bass-pattern", choices=_choices(BassPattern), help="Bass figure.")
    parser.add_argument("--bass-octave", type=int, help="Octave of the bass register.")
    parser.add_argument("--melody-octave", type=int, help="Octave of the melody's scale.")
    parser.add_argument("--randomize", action="store_true", help="Pick rhythm, contour, motif, articulation, dynamics and humanize options at random.")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output.")
    parser.add_argument("--settings-file", type=str, help="JSON file providing default options.")
    parser.add_argument("--save-settings", action="store_true", help="Write the effective options back to the settings file.")
    parser.add_argument("--output", type=str, help="Destination JSON file. Defaults to standard output.")
    return parser


# Argument names that map directly onto ``CompositionSettings`` fields.
_FIELD_ARGS = {
    "key": "key",
    "tempo": "tempo",
    "bars": "bars",
    "progression": "progression",
    "verse_progression": "verse_progression",
    "chorus_progression": "chorus_progression",
    "rhythm": "rhythm_pattern",
    "contour": "contour",
    "complexity": "complexity",
    "use_motif": "use_motif",
    "variation": "motif_variation",
    "articulation": "articulation",
    "dynamics": "dynamics",
    "humanize": "humanize",
    "voice_leading": "voice_leading",
    "extended_chords": "extended_chords",
    "chord_duration": "chord_duration",
    "structure": "structure",
    "bass_pattern": "bass_pattern",
    "bass_octave": "bass_octave",
    "melody_octave": "melody_octave",
}


def _settings_from_args(args: argparse.Namespace, stored: dict) -> CompositionSettings:
    settings = CompositionSettings.from_dict(stored)
    overrides = {
        field: getattr(args, arg)
        for arg, field in _FIELD_ARGS.items()
        if getattr(args, arg) is not None
    }
    if args.inversion is not None:
        overrides["inversion"] = args.inversion
        overrides["use_inversions"] = args.inversion > 0
    return replace(settings, **overrides)


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments and write a composition as JSON.

    Validation problems are logged and terminate the process with exit
    status ``1``.
    """

    args = build_parser().parse_args(argv)

    if args.list_keys:
        print("\n".join(available_keys()))
        print("Modes: " + ", ".join(available_modes()))
        return
    if args.list_progressions:
        print("\n".join(available_progressions()))
        return

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    stored = load_settings(settings_path)

    try:
        settings = _settings_from_args(args, stored)
        validate_settings(settings)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    rng = random.Random(args.seed)
    if args.randomize:
        settings = randomize_settings(settings, rng)
        logging.info(
            "Randomized options: rhythm=%s contour=%s motif=%s variation=%s articulation=%s dynamics=%s humanize=%s",
            settings.rhythm_pattern,
            settings.contour,
            settings.use_motif,
            settings.motif_variation,
            settings.articulation,
            settings.dynamics,
            settings.humanize,
        )

    try:
        piece = generate_composition(settings, rng=rng)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    if args.save_settings:
        save_settings(settings.to_dict(), settings_path)

    payload = json.dumps(piece.to_dict(), indent=2)
    if args.output:
        output = Path(args.output)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            logging.error("Could not write composition: %s", exc)
            sys.exit(1)
        logging.info("Composition written to %s", output)
    else:
        print(payload)


def main(argv: Optional[List[str]] = None) -> None:
    """Console entry point."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli(argv)
