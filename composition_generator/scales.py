"""Scale and key resolution.

A key string such as ``"C major"``, ``"F# dorian"`` or ``"Am"`` names a
tonic and a mode. :func:`resolve_scale` turns the pair into an immutable
:class:`Scale`: the ordered pitches of the mode starting at a base octave,
closed by the tonic one octave higher (``C4 D4 E4 F4 G4 A4 B4 C5``).

Scales are memoized with ``functools.lru_cache``. The cache key is the full
argument tuple and the cached values are frozen, so independent generation
calls never observe each other's state.

Example
-------
>>> from composition_generator.scales import scale_for_key
>>> scale_for_key("A minor").pitches[:3]
('A4', 'B4', 'C5')
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterator, List, Optional, Tuple

from . import NOTES
from .note_utils import midi_to_note, note_to_midi, pitch_class

__all__ = [
    "MODE_INTERVALS",
    "DEFAULT_MODE",
    "Scale",
    "normalise_mode",
    "parse_key",
    "resolve_scale",
    "scale_for_key",
    "available_modes",
    "available_keys",
]

logger = logging.getLogger(__name__)

DEFAULT_MODE = "major"

# Semitone offsets from the tonic for each supported mode.
MODE_INTERVALS: Dict[str, Tuple[int, ...]] = {
    "major": (0, 2, 4, 5, 7, 9, 11),
    "minor": (0, 2, 3, 5, 7, 8, 10),
    "dorian": (0, 2, 3, 5, 7, 9, 10),
    "phrygian": (0, 1, 3, 5, 7, 8, 10),
    "lydian": (0, 2, 4, 6, 7, 9, 11),
    "mixolydian": (0, 2, 4, 5, 7, 9, 10),
    "locrian": (0, 1, 3, 5, 6, 8, 10),
    "harmonic minor": (0, 2, 3, 5, 7, 8, 11),
    "melodic minor": (0, 2, 3, 5, 7, 9, 11),
    "major pentatonic": (0, 2, 4, 7, 9),
    "minor pentatonic": (0, 3, 5, 7, 10),
    "blues": (0, 3, 5, 6, 7, 10),
    "whole tone": (0, 2, 4, 6, 8, 10),
    "chromatic": tuple(range(12)),
}

_MODE_ALIASES = {
    "ionian": "major",
    "maj": "major",
    "aeolian": "minor",
    "natural minor": "minor",
    "min": "minor",
    "m": "minor",
    "pentatonic": "major pentatonic",
    "wholetone": "whole tone",
}

_KEY_RE = re.compile(r"([A-Ga-g][#b]*)\s*(.*)")


@dataclass(frozen=True)
class Scale:
    """Ordered pitches of one mode, closed by the upper tonic."""

    tonic: str
    mode: str
    pitches: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.pitches)

    def __getitem__(self, index: int) -> str:
        return self.pitches[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self.pitches)

    @property
    def pitch_classes(self) -> Tuple[str, ...]:
        return tuple(pitch_class(p) for p in self.pitches)

    @property
    def degrees(self) -> Tuple[str, ...]:
        """Distinct pitch classes of one octave, starting at the tonic."""

        return tuple(dict.fromkeys(self.pitch_classes))

    def index_of(self, name: str) -> Optional[int]:
        """Return the first index whose pitch class matches ``name``."""

        target = pitch_class(name)
        for idx, pc in enumerate(self.pitch_classes):
            if pc == target:
                return idx
        return None


def normalise_mode(mode: Optional[str]) -> str:
    """Return the canonical mode name, falling back to major when unknown."""

    text = " ".join((mode or "").strip().lower().replace("_", " ").replace("-", " ").split())
    if not text:
        return DEFAULT_MODE
    text = _MODE_ALIASES.get(text, text)
    if text not in MODE_INTERVALS:
        logger.warning("Unknown mode %r; falling back to %s", mode, DEFAULT_MODE)
        return DEFAULT_MODE
    return text


def parse_key(key: str) -> Tuple[str, str]:
    """Split a key string into ``(tonic, mode)``.

    The tonic is returned as a sharp-spelled pitch class. A bare lowercase
    ``m`` suffix (``"Am"``) selects the minor mode, no suffix selects major
    and underscores are treated as spaces so ``"C_dorian"`` is accepted.

    Raises
    ------
    ValueError
        If ``key`` does not begin with a valid tonic.
    """

    text = str(key).strip().replace("_", " ").replace("♯", "#").replace("♭", "b")
    match = _KEY_RE.fullmatch(text)
    if not match:
        raise ValueError(f"Unknown key: {key}")
    tonic_name, rest = match.groups()
    tonic = pitch_class(tonic_name)
    rest = rest.strip()
    if rest == "M":
        return tonic, "major"
    return tonic, normalise_mode(rest)


@lru_cache(maxsize=None)
def resolve_scale(tonic: str, mode: str = DEFAULT_MODE, base_octave: int = 4, octaves: int = 1) -> Scale:
    """Build the :class:`Scale` for ``tonic`` and ``mode``.

    Parameters
    ----------
    tonic:
        Pitch class of the first degree. Flats are respelled with sharps.
    mode:
        Mode name from :data:`MODE_INTERVALS`. Unknown names fall back to
        major.
    base_octave:
        Octave of the first pitch.
    octaves:
        Number of octaves spanned before the closing tonic.

    Returns
    -------
    Scale
        ``len(intervals) * octaves + 1`` pitches in ascending order.

    Raises
    ------
    ValueError
        If ``tonic`` is invalid or the scale would leave the MIDI range.
    """

    if octaves < 1:
        raise ValueError("octaves must be at least 1")
    tonic = pitch_class(tonic)
    mode = normalise_mode(mode)
    intervals = MODE_INTERVALS[mode]
    base = note_to_midi(f"{tonic}{base_octave}")

    pitches: List[str] = []
    for octave in range(octaves):
        for interval in intervals:
            pitches.append(midi_to_note(base + octave * 12 + interval))
    pitches.append(midi_to_note(base + octaves * 12))
    return Scale(tonic=tonic, mode=mode, pitches=tuple(pitches))


def scale_for_key(key: str, base_octave: int = 4, octaves: int = 1) -> Scale:
    """Parse ``key`` and return its :class:`Scale`."""

    tonic, mode = parse_key(key)
    return resolve_scale(tonic, mode, base_octave, octaves)


def available_modes() -> List[str]:
    return list(MODE_INTERVALS)


def available_keys() -> List[str]:
    """Return key names for every tonic in the major and minor modes."""

    return [f"{note} {mode}" for mode in ("major", "minor") for note in NOTES]
