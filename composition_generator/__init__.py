#!/usr/bin/env python3
"""Composition Generator library.

The package turns a handful of musical choices (key, progression, rhythm
pattern, melodic contour, section structure) into a complete composition:
a chord track, a melody and a bass line. All three parts are plain note
events measured in beats so that downstream renderers, such as a MIDI
writer or a browser synthesiser, can schedule them without further musical
knowledge.

Underlying Algorithm
--------------------
1. Resolve the key into a scale and the progression template into chords.
2. Optionally re-voice the chords so each one moves as little as possible
   from its predecessor.
3. Generate the melody either by walking a rhythm pattern along a contour
   curve or by repeating and varying a short seed motif.
4. Derive the bass line from the chord roots using one of several figures.
5. Shape the melody and bass with articulation, dynamics and humanization.

Pseudocode
~~~~~~~~~~
```
scale = resolve_scale(tonic, mode)
chords = resolve_progression(key, template)
if voice_leading:
    chords = apply_voice_leading(chords)
melody = pattern_or_motif(scale, chords)
bass = generate_bass_line(chords)
melody, bass = apply_expression(melody), apply_expression(bass)
```

Example
-------
>>> from composition_generator import CompositionSettings, generate_composition
>>> piece = generate_composition(CompositionSettings(key="D major", bars=8))
>>> piece.chords[0].symbol
'D'

Every generator accepts an optional ``random.Random`` instance so callers can
reproduce a composition exactly by seeding it.
"""

__version__ = "0.1.0"

# Modification Summary
# ---------------------
# * Settings helpers now honour the ``COMPOSITION_SETTINGS_FILE`` environment
#   variable so tests and the web API can redirect persistence.
# * Constants shared by every submodule are defined before the submodules are
#   imported to avoid circular import failures.
# * Public helpers from each submodule are re-exported here so callers can use
#   ``from composition_generator import generate_composition``.

import json
import logging
import os
from pathlib import Path
from typing import List

env_path = os.environ.get("COMPOSITION_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".composition_generator_settings.json"

# Octave limits accepted for user supplied melody and bass registers. Scale
# and chord construction adds at most one octave on top of the base so these
# bounds keep every generated note inside the MIDI range.
MIN_OCTAVE = 0
MAX_OCTAVE = 8

# Every timing value in the package is expressed in beats with four beats to
# a bar.
BEATS_PER_BAR = 4

NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Settings file %s does not contain a JSON object", path)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to persist preferences must never stop generation.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except (OSError, TypeError) as exc:
        logging.error(f"Could not save settings: {exc}")


from .note_utils import note_to_midi, midi_to_note, pitch_class  # noqa: E402
from .events import NoteEvent  # noqa: E402
from .scales import Scale, resolve_scale, scale_for_key, parse_key  # noqa: E402
from .chords import ChordQuality, ChordSpec, build_chord  # noqa: E402
from .progression import (  # noqa: E402
    COMMON_PROGRESSIONS,
    ADVANCED_PROGRESSIONS,
    ProgressionTemplate,
    get_progression,
    resolve_progression,
)
from .voice_leading import apply_voice_leading, apply_inversion  # noqa: E402
from .motif import MotifNote, MotifVariation, generate_motif, apply_motif_variation  # noqa: E402
from .rhythm_engine import RhythmPattern, ContourType  # noqa: E402
from .melody import (  # noqa: E402
    generate_pattern_melody,
    generate_motif_melody,
    generate_chord_melody,
    generate_arpeggio,
)
from .bass import BassPattern, generate_bass_notes, generate_bass_line  # noqa: E402
from .dynamics import (  # noqa: E402
    Articulation,
    Dynamics,
    HumanizeOptions,
    apply_articulation,
    apply_dynamics,
    humanize_notes,
    apply_expression,
)
from .composition import (  # noqa: E402
    Composition,
    CompositionSettings,
    generate_composition,
    randomize_settings,
)

__all__ = [
    "__version__",
    "DEFAULT_SETTINGS_FILE",
    "MIN_OCTAVE",
    "MAX_OCTAVE",
    "BEATS_PER_BAR",
    "NOTES",
    "load_settings",
    "save_settings",
    "note_to_midi",
    "midi_to_note",
    "pitch_class",
    "NoteEvent",
    "Scale",
    "resolve_scale",
    "scale_for_key",
    "parse_key",
    "ChordQuality",
    "ChordSpec",
    "build_chord",
    "COMMON_PROGRESSIONS",
    "ADVANCED_PROGRESSIONS",
    "ProgressionTemplate",
    "get_progression",
    "resolve_progression",
    "apply_voice_leading",
    "apply_inversion",
    "MotifNote",
    "MotifVariation",
    "generate_motif",
    "apply_motif_variation",
    "RhythmPattern",
    "ContourType",
    "generate_pattern_melody",
    "generate_motif_melody",
    "generate_chord_melody",
    "generate_arpeggio",
    "BassPattern",
    "generate_bass_notes",
    "generate_bass_line",
    "Articulation",
    "Dynamics",
    "HumanizeOptions",
    "apply_articulation",
    "apply_dynamics",
    "humanize_notes",
    "apply_expression",
    "Composition",
    "CompositionSettings",
    "generate_composition",
    "randomize_settings",
]
