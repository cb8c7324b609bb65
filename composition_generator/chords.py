"""Chord qualities, chord construction and the :class:`ChordSpec` value type.

Chords are built from a root pitch class and a :class:`ChordQuality`. The
quality's interval list is applied to the root at octave four, producing the
chord's canonical ``pitches``. Voice leading and static inversions never
touch ``pitches``; they store an alternative ordering in ``voicing`` and
return a new :class:`ChordSpec`.

Example
-------
>>> from composition_generator.chords import build_chord
>>> build_chord("A", "min7").pitches
('A4', 'C5', 'E5', 'G5')
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .note_utils import midi_to_note, note_to_midi, pitch_class
from .utils import coerce_choice

__all__ = [
    "ChordQuality",
    "CHORD_INTERVALS",
    "CHORD_OCTAVE",
    "ChordSpec",
    "build_chord",
    "parse_chord_symbol",
    "extend_quality",
]

logger = logging.getLogger(__name__)

# Chords are always rooted in this octave before any re-voicing.
CHORD_OCTAVE = 4


class ChordQuality(str, Enum):
    MAJOR = "maj"
    MINOR = "min"
    DOMINANT7 = "7"
    MAJOR7 = "maj7"
    MINOR7 = "min7"
    DIMINISHED = "dim"
    AUGMENTED = "aug"
    SUS4 = "sus4"
    SUS2 = "sus2"
    DOMINANT9 = "dom9"
    MAJOR9 = "maj9"
    MINOR9 = "min9"
    ADD9 = "add9"
    SEVEN_SUS4 = "7sus4"
    SEVEN_FLAT9 = "7b9"
    SEVEN_SHARP9 = "7#9"
    THIRTEENTH = "13"
    SIXTH = "6"
    MINOR6 = "min6"
    NINE_SUS4 = "9sus4"
    DIMINISHED7 = "dim7"
    HALF_DIMINISHED7 = "hdim7"
    AUGMENTED7 = "aug7"
    AUGMENTED_MAJOR7 = "augmaj7"
    DIMINISHED_MAJOR7 = "dimmaj7"
    SUS4_MAJOR7 = "maj7sus4"
    SUS2_MAJOR7 = "maj7sus2"
    SIXTH_MAJOR7 = "6maj7"
    MINOR6_MAJOR7 = "min6maj7"


# Semitone offsets above the root for every quality.
CHORD_INTERVALS: Dict[ChordQuality, Tuple[int, ...]] = {
    ChordQuality.MAJOR: (0, 4, 7),
    ChordQuality.MINOR: (0, 3, 7),
    ChordQuality.DOMINANT7: (0, 4, 7, 10),
    ChordQuality.MAJOR7: (0, 4, 7, 11),
    ChordQuality.MINOR7: (0, 3, 7, 10),
    ChordQuality.DIMINISHED: (0, 3, 6),
    ChordQuality.AUGMENTED: (0, 4, 8),
    ChordQuality.SUS4: (0, 5, 7),
    ChordQuality.SUS2: (0, 2, 7),
    ChordQuality.DOMINANT9: (0, 4, 7, 10, 14),
    ChordQuality.MAJOR9: (0, 4, 7, 11, 14),
    ChordQuality.MINOR9: (0, 3, 7, 10, 14),
    ChordQuality.ADD9: (0, 4, 7, 14),
    ChordQuality.SEVEN_SUS4: (0, 5, 7, 10),
    ChordQuality.SEVEN_FLAT9: (0, 4, 7, 10, 13),
    ChordQuality.SEVEN_SHARP9: (0, 4, 7, 10, 15),
    ChordQuality.THIRTEENTH: (0, 4, 7, 10, 14, 21),
    ChordQuality.SIXTH: (0, 4, 7, 9),
    ChordQuality.MINOR6: (0, 3, 7, 9),
    ChordQuality.NINE_SUS4: (0, 5, 7, 10, 14),
    ChordQuality.DIMINISHED7: (0, 3, 6, 9),
    ChordQuality.HALF_DIMINISHED7: (0, 3, 6, 10),
    ChordQuality.AUGMENTED7: (0, 4, 8, 10),
    ChordQuality.AUGMENTED_MAJOR7: (0, 4, 8, 11),
    ChordQuality.DIMINISHED_MAJOR7: (0, 3, 6, 11),
    ChordQuality.SUS4_MAJOR7: (0, 5, 7, 11),
    ChordQuality.SUS2_MAJOR7: (0, 2, 7, 11),
    ChordQuality.SIXTH_MAJOR7: (0, 4, 7, 9, 11),
    ChordQuality.MINOR6_MAJOR7: (0, 3, 7, 9, 11),
}

# Suffix appended to the root when rendering a chord symbol.
_SYMBOL_SUFFIXES: Dict[ChordQuality, str] = {
    ChordQuality.MAJOR: "",
    ChordQuality.MINOR: "m",
    ChordQuality.MINOR7: "m7",
    ChordQuality.MINOR9: "m9",
    ChordQuality.MINOR6: "m6",
    ChordQuality.DOMINANT9: "9",
    ChordQuality.HALF_DIMINISHED7: "m7b5",
    ChordQuality.MINOR6_MAJOR7: "m6maj7",
}

# Accepted spellings when parsing chord symbols such as ``"F#m7"``.
_SUFFIX_ALIASES: Dict[str, ChordQuality] = {
    "": ChordQuality.MAJOR,
    "M": ChordQuality.MAJOR,
    "m": ChordQuality.MINOR,
    "-": ChordQuality.MINOR,
    "M7": ChordQuality.MAJOR7,
    "Δ": ChordQuality.MAJOR7,
    "Δ7": ChordQuality.MAJOR7,
    "m7": ChordQuality.MINOR7,
    "-7": ChordQuality.MINOR7,
    "m9": ChordQuality.MINOR9,
    "m6": ChordQuality.MINOR6,
    "9": ChordQuality.DOMINANT9,
    "°": ChordQuality.DIMINISHED,
    "o": ChordQuality.DIMINISHED,
    "°7": ChordQuality.DIMINISHED7,
    "o7": ChordQuality.DIMINISHED7,
    "ø": ChordQuality.HALF_DIMINISHED7,
    "ø7": ChordQuality.HALF_DIMINISHED7,
    "m7b5": ChordQuality.HALF_DIMINISHED7,
    "+": ChordQuality.AUGMENTED,
    "+7": ChordQuality.AUGMENTED7,
    "maj7#5": ChordQuality.AUGMENTED_MAJOR7,
}

# Qualities promoted when extended chords are requested. The minor triad
# takes a minor seventh, every other chord without a seventh or ninth takes a
# major seventh. Qualities absent here are already extended.
_EXTENSIONS: Dict[ChordQuality, ChordQuality] = {
    ChordQuality.MAJOR: ChordQuality.MAJOR7,
    ChordQuality.MINOR: ChordQuality.MINOR7,
    ChordQuality.AUGMENTED: ChordQuality.AUGMENTED_MAJOR7,
    ChordQuality.DIMINISHED: ChordQuality.DIMINISHED_MAJOR7,
    ChordQuality.SUS4: ChordQuality.SUS4_MAJOR7,
    ChordQuality.SUS2: ChordQuality.SUS2_MAJOR7,
    ChordQuality.SIXTH: ChordQuality.SIXTH_MAJOR7,
    ChordQuality.MINOR6: ChordQuality.MINOR6_MAJOR7,
}

_SYMBOL_RE = re.compile(r"([A-Ga-g][#b]?)(.*)")


@dataclass(frozen=True)
class ChordSpec:
    """Immutable description of one chord in a progression.

    ``pitches`` is the root-position chord. ``voicing`` holds the re-ordered
    pitches chosen by voice leading or a static inversion, or ``None`` when
    the chord is played as built. ``position`` and ``duration`` are measured
    in bars.
    """

    root: str
    quality: ChordQuality
    pitches: Tuple[str, ...]
    degree: Optional[str] = None
    voicing: Optional[Tuple[str, ...]] = None
    position: float = 0.0
    duration: float = 1.0
    section: Optional[str] = None

    @property
    def symbol(self) -> str:
        suffix = _SYMBOL_SUFFIXES.get(self.quality, self.quality.value)
        return f"{self.root}{suffix}"

    @property
    def notes(self) -> Tuple[str, ...]:
        """Pitches as they should sound."""

        return self.voicing if self.voicing is not None else self.pitches

    @property
    def pitch_classes(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(pitch_class(p) for p in self.notes))

    def with_voicing(self, voicing: Tuple[str, ...]) -> "ChordSpec":
        return replace(self, voicing=tuple(voicing))

    def placed(self, position: float, duration: float, section: Optional[str] = None) -> "ChordSpec":
        return replace(self, position=position, duration=duration, section=section)

    def to_dict(self) -> dict:
        data = {
            "symbol": self.symbol,
            "root": self.root,
            "quality": self.quality.value,
            "degree": self.degree,
            "notes": list(self.notes),
            "position": self.position,
            "duration": self.duration,
        }
        if self.section is not None:
            data["section"] = self.section
        return data


def build_chord(
    root: str,
    quality: Union[ChordQuality, str] = ChordQuality.MAJOR,
    octave: int = CHORD_OCTAVE,
    degree: Optional[str] = None,
) -> ChordSpec:
    """Construct a root-position chord.

    Parameters
    ----------
    root:
        Root pitch class in any spelling.
    quality:
        A :class:`ChordQuality` or its value. Unknown qualities fall back to
        a major triad.
    octave:
        Octave of the root pitch.
    degree:
        Optional roman numeral label recorded on the result.

    Raises
    ------
    ValueError
        If ``root`` is not a valid pitch class.
    """

    quality = coerce_choice(ChordQuality, quality, ChordQuality.MAJOR)
    root = pitch_class(root)
    base = note_to_midi(f"{root}{octave}")
    pitches = tuple(midi_to_note(base + i) for i in CHORD_INTERVALS[quality])
    return ChordSpec(root=root, quality=quality, pitches=pitches, degree=degree)


def parse_chord_symbol(symbol: str) -> Tuple[str, ChordQuality]:
    """Split a chord symbol such as ``"Ebmaj7"`` into root and quality.

    Raises
    ------
    ValueError
        If the root or the suffix is not recognised.
    """

    text = str(symbol).strip().replace("♯", "#").replace("♭", "b")
    match = _SYMBOL_RE.fullmatch(text)
    if not match:
        raise ValueError(f"Unknown chord: {symbol}")
    root_name, suffix = match.groups()
    quality = _SUFFIX_ALIASES.get(suffix)
    if quality is None:
        try:
            quality = ChordQuality(suffix.lower())
        except ValueError:
            raise ValueError(f"Unknown chord: {symbol}") from None
    return pitch_class(root_name), quality


def extend_quality(quality: ChordQuality) -> ChordQuality:
    """Return the seventh chord that extends ``quality``."""

    return _EXTENSIONS.get(quality, quality)
