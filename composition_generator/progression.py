"""Roman numeral progressions and their resolution into chords.

A :class:`ProgressionTemplate` is an ordered list of degree labels such as
``("I", "V", "vi", "IV")`` with optional per-entry quality overrides.
:func:`resolve_progression` turns a template into :class:`ChordSpec` values
for a given key.

Label grammar
-------------
``[accidentals]numeral[suffix][/target]``

* ``accidentals`` are any number of ``b``/``#`` (or ``♭``/``♯``) shifting
  the root chromatically, e.g. ``bVII``.
* ``numeral`` is ``I`` to ``VII``. Uppercase selects a major chord and
  lowercase a minor chord.
* ``suffix`` refines the quality: ``°``/``dim``, ``ø``, ``+``/``aug``,
  ``7``, ``maj7``, ``9``, ``sus4`` and the other names in
  :class:`ChordQuality`.
* ``/target`` builds a secondary chord: ``V/V`` is the dominant of the
  dominant. The target is resolved first and the base numeral is then read
  in the target's own major or minor key.

Labels that are plain chord symbols (``"Am"``, ``"F#7"``) are accepted as
well.

When any label fails to resolve, or the result collapses into a single
repeated chord, the whole progression is replaced by the tonic,
subdominant and dominant triads of the key, cycled to the template's length.

Example
-------
>>> from composition_generator.progression import get_progression, resolve_progression
>>> [c.symbol for c in resolve_progression("C major", get_progression("Jazz ii-V-I"))]
['Dm', 'G', 'C']
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import NOTES
from .chords import (
    CHORD_OCTAVE,
    ChordQuality,
    ChordSpec,
    build_chord,
    extend_quality,
    parse_chord_symbol,
)
from .note_utils import pitch_class
from .scales import Scale, parse_key, resolve_scale
from .utils import coerce_choice

__all__ = [
    "COMMON_PROGRESSIONS",
    "ADVANCED_PROGRESSIONS",
    "DEFAULT_PROGRESSION",
    "FALLBACK_DEGREES",
    "ProgressionError",
    "ProgressionTemplate",
    "get_progression",
    "available_progressions",
    "as_template",
    "resolve_degree",
    "fallback_progression",
    "resolve_progression",
]

logger = logging.getLogger(__name__)

DEFAULT_PROGRESSION = "Basic I-IV-V-I"

# Scale degrees used when a progression cannot be resolved: tonic,
# subdominant and dominant.
FALLBACK_DEGREES: Tuple[int, ...] = (0, 3, 4)

COMMON_PROGRESSIONS: Dict[str, Tuple[str, ...]] = {
    "Basic I-IV-V-I": ("I", "IV", "V", "I"),
    "Pop I-V-vi-IV": ("I", "V", "vi", "IV"),
    "Jazz ii-V-I": ("ii", "V", "I"),
    "Blues I-IV-I-V-IV-I": ("I", "IV", "I", "V", "IV", "I"),
    "50s I-vi-IV-V": ("I", "vi", "IV", "V"),
    "Circle of Fifths": ("vi", "ii", "V", "I"),
    "Emotional vi-IV-I-V": ("vi", "IV", "I", "V"),
    "Canon (Pachelbel)": ("I", "V", "vi", "iii", "IV", "I", "IV", "V"),
    "Andalusian Cadence": ("i", "VII", "VI", "V"),
    "Royal Road": ("I", "vi", "ii", "V"),
    "Creep (Radiohead)": ("I", "III", "IV", "iv"),
    "Doo-Wop": ("I", "vi", "IV", "V", "I"),
    "Sad Ballad": ("vi", "IV", "ii", "V"),
    "Epic Journey": ("I", "V", "vi", "iii", "IV", "I", "V"),
    "Dramatic Minor": ("i", "VI", "III", "VII"),
    "Hopeful": ("I", "iii", "vi", "IV"),
    "Mysterious": ("i", "VII", "VI", "v"),
    "Heroic": ("I", "V", "vi", "IV", "I", "V", "IV", "V"),
    "Nostalgic": ("IV", "V", "iii", "vi"),
    "Suspenseful": ("i", "V", "VI", "III"),
    "Triumphant": ("I", "IV", "V", "I", "IV", "I", "V", "I"),
}

_ROMAN_DEGREES: Dict[str, int] = {
    "i": 0,
    "ii": 1,
    "iii": 2,
    "iv": 3,
    "v": 4,
    "vi": 5,
    "vii": 6,
}

_ACCIDENTAL_OFFSETS: Dict[str, int] = {"b": -1, "#": 1}

# Suffixes whose quality depends on the numeral's case: (upper, lower).
_CASED_SUFFIXES: Dict[str, Tuple[ChordQuality, ChordQuality]] = {
    "": (ChordQuality.MAJOR, ChordQuality.MINOR),
    "7": (ChordQuality.DOMINANT7, ChordQuality.MINOR7),
    "9": (ChordQuality.DOMINANT9, ChordQuality.MINOR9),
    "6": (ChordQuality.SIXTH, ChordQuality.MINOR6),
}

# Suffixes that fix the quality regardless of case.
_FIXED_SUFFIXES: Dict[str, ChordQuality] = {
    "°": ChordQuality.DIMINISHED,
    "o": ChordQuality.DIMINISHED,
    "dim": ChordQuality.DIMINISHED,
    "°7": ChordQuality.DIMINISHED7,
    "o7": ChordQuality.DIMINISHED7,
    "ø": ChordQuality.HALF_DIMINISHED7,
    "ø7": ChordQuality.HALF_DIMINISHED7,
    "m7b5": ChordQuality.HALF_DIMINISHED7,
    "+": ChordQuality.AUGMENTED,
    "+7": ChordQuality.AUGMENTED7,
    "M7": ChordQuality.MAJOR7,
    "Δ": ChordQuality.MAJOR7,
    "Δ7": ChordQuality.MAJOR7,
}

# Target qualities that make a secondary chord borrow from a minor key.
_MINOR_QUALITIES = {
    ChordQuality.MINOR,
    ChordQuality.MINOR7,
    ChordQuality.MINOR9,
    ChordQuality.MINOR6,
    ChordQuality.DIMINISHED,
    ChordQuality.DIMINISHED7,
    ChordQuality.HALF_DIMINISHED7,
}

# Triad qualities indexed by (third, fifth) semitones above the root.
_TRIAD_QUALITIES: Dict[Tuple[int, int], ChordQuality] = {
    (4, 7): ChordQuality.MAJOR,
    (3, 7): ChordQuality.MINOR,
    (3, 6): ChordQuality.DIMINISHED,
    (4, 8): ChordQuality.AUGMENTED,
}

_ROMAN_RE = re.compile(r"^([b#]*)([ivxIVX]+)(.*)$")

_NUMERALS = ("I", "II", "III", "IV", "V", "VI", "VII")


class ProgressionError(ValueError):
    """Raised when a degree label cannot be resolved in a key."""


@dataclass(frozen=True)
class ProgressionTemplate:
    """Degree labels with optional quality overrides.

    ``qualities`` may be shorter than ``degrees``; missing entries mean the
    quality comes from the label itself.
    """

    degrees: Tuple[str, ...]
    qualities: Tuple[Optional[ChordQuality], ...] = ()
    name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.degrees)

    def quality_at(self, index: int) -> Optional[ChordQuality]:
        if index < len(self.qualities):
            return self.qualities[index]
        return None

    def subset(self, start: Optional[int] = None, stop: Optional[int] = None) -> "ProgressionTemplate":
        """Return the template restricted to ``degrees[start:stop]``."""

        qualities = tuple(self.quality_at(i) for i in range(len(self.degrees)))
        return ProgressionTemplate(self.degrees[start:stop], qualities[start:stop], self.name)

    @classmethod
    def from_degrees(
        cls,
        degrees: Sequence[str],
        qualities: Optional[Sequence[Union[str, ChordQuality, None]]] = None,
        name: Optional[str] = None,
    ) -> "ProgressionTemplate":
        parsed: Tuple[Optional[ChordQuality], ...] = ()
        if qualities:
            parsed = tuple(
                None if q is None else coerce_choice(ChordQuality, q, ChordQuality.MAJOR)
                for q in qualities
            )
        return cls(tuple(str(d).strip() for d in degrees), parsed, name)


ADVANCED_PROGRESSIONS: Dict[str, ProgressionTemplate] = {
    name: ProgressionTemplate.from_degrees(degrees, qualities, name)
    for name, degrees, qualities in (
        ("Basic I-IV-V-I", ("I", "IV", "V", "I"), ("maj", "maj", "maj", "maj")),
        ("Pop I-V-vi-IV", ("I", "V", "vi", "IV"), ("maj", "maj", "min", "maj")),
        ("Jazz ii-V-I", ("ii", "V", "I"), ("min7", "7", "maj7")),
        ("Jazz ii-V-I with 9ths", ("ii", "V", "I"), ("min9", "dom9", "maj9")),
        ("Blues I-IV-I-V-IV-I", ("I", "IV", "I", "V", "IV", "I"), ("7",) * 6),
        ("Secondary Dominant", ("I", "V/V", "V", "I"), ("maj", "7", "7", "maj")),
        ("Modal Mixture", ("I", "bVI", "bVII", "I"), ("maj", "maj", "maj", "maj")),
        ("Circle of Fifths", ("vi", "ii", "V", "I"), ("min7", "min7", "7", "maj7")),
        (
            "Descending Fifths",
            ("I", "IV", "vii°", "iii", "vi", "ii", "V", "I"),
            ("maj7", "maj7", "dim7", "min7", "min7", "min7", "7", "maj7"),
        ),
    )
}


def get_progression(name: str, qualified: bool = False) -> ProgressionTemplate:
    """Look up a named progression.

    Names found in :data:`COMMON_PROGRESSIONS` resolve to plain roman
    numerals unless ``qualified`` is set, in which case the entry from
    :data:`ADVANCED_PROGRESSIONS` with explicit chord qualities wins. A name
    that matches neither library but contains ``-`` or ``,`` separators is
    read as a literal degree list (``"ii-V-I"``). Anything else falls back
    to :data:`DEFAULT_PROGRESSION`.
    """

    text = str(name).strip()
    if qualified and text in ADVANCED_PROGRESSIONS:
        return ADVANCED_PROGRESSIONS[text]
    if text in COMMON_PROGRESSIONS:
        return ProgressionTemplate(COMMON_PROGRESSIONS[text], name=text)
    if text in ADVANCED_PROGRESSIONS:
        return ADVANCED_PROGRESSIONS[text]

    lowered = {key.lower(): key for key in list(COMMON_PROGRESSIONS) + list(ADVANCED_PROGRESSIONS)}
    if text.lower() in lowered:
        return get_progression(lowered[text.lower()], qualified)

    if "-" in text or "," in text:
        labels = [part.strip() for part in re.split(r"[-,]", text) if part.strip()]
        if labels:
            return ProgressionTemplate(tuple(labels), name=text)

    logger.warning("Unknown progression %r; using %s", name, DEFAULT_PROGRESSION)
    return ProgressionTemplate(COMMON_PROGRESSIONS[DEFAULT_PROGRESSION], name=DEFAULT_PROGRESSION)


def available_progressions() -> List[str]:
    names = list(COMMON_PROGRESSIONS)
    names.extend(name for name in ADVANCED_PROGRESSIONS if name not in COMMON_PROGRESSIONS)
    return names


def as_template(value: Union[str, Sequence[str], ProgressionTemplate]) -> ProgressionTemplate:
    """Accept a template, a progression name or a list of degree labels."""

    if isinstance(value, ProgressionTemplate):
        return value
    if isinstance(value, str):
        return get_progression(value)
    return ProgressionTemplate.from_degrees(list(value))


def _harmonic_scale(scale: Scale) -> Scale:
    """Return a seven-note scale for reading roman numerals.

    Pentatonic, blues, whole tone and chromatic scales do not have seven
    degrees, so numerals are read in the parallel major (or minor for the
    minor-flavoured scales) instead.
    """

    if len(scale.degrees) == 7:
        return scale
    parent = "minor" if scale.mode in ("minor pentatonic", "blues") else "major"
    return resolve_scale(scale.tonic, parent)


def _label_quality(numeral: str, suffix: str) -> ChordQuality:
    upper = numeral.isupper()
    if suffix in _CASED_SUFFIXES:
        major, minor = _CASED_SUFFIXES[suffix]
        return major if upper else minor
    if suffix in _FIXED_SUFFIXES:
        return _FIXED_SUFFIXES[suffix]
    try:
        return ChordQuality(suffix.lower())
    except ValueError:
        raise ProgressionError(f"Unsupported chord suffix: {suffix}") from None


def resolve_degree(label: str, scale: Scale) -> Tuple[str, ChordQuality]:
    """Resolve a single degree label into ``(root, quality)``.

    Raises
    ------
    ProgressionError
        If the label is malformed or names an unsupported degree.
    """

    token = str(label).replace("♭", "b").replace("♯", "#").strip()
    if not token:
        raise ProgressionError("Empty degree label")
    harmonic = _harmonic_scale(scale)

    if "/" in token:
        base, target = token.split("/", 1)
        target_root, target_quality = resolve_degree(target, harmonic)
        mode = "minor" if target_quality in _MINOR_QUALITIES else "major"
        return resolve_degree(base, resolve_scale(target_root, mode))

    match = _ROMAN_RE.match(token)
    if match:
        accidentals, numeral, suffix = match.groups()
        degree = _ROMAN_DEGREES.get(numeral.lower())
        if degree is None:
            raise ProgressionError(f"Unsupported Roman numeral: {label}")
        base_note = harmonic.degrees[degree]
        offset = sum(_ACCIDENTAL_OFFSETS[ch] for ch in accidentals)
        root = _shift(base_note, offset)
        return root, _label_quality(numeral, suffix.strip())

    try:
        return parse_chord_symbol(token)
    except ValueError:
        raise ProgressionError(f"Invalid degree label: {label}") from None


def _shift(name: str, semitones: int) -> str:
    return NOTES[(NOTES.index(pitch_class(name)) + semitones) % 12]


def _triad_quality(scale: Scale, degree: int) -> ChordQuality:
    """Quality of the triad stacked in thirds on ``degree`` of ``scale``."""

    degrees = scale.degrees
    root = degrees[degree]
    third = degrees[(degree + 2) % len(degrees)]
    fifth = degrees[(degree + 4) % len(degrees)]
    base = NOTES.index(root)
    intervals = ((NOTES.index(third) - base) % 12, (NOTES.index(fifth) - base) % 12)
    return _TRIAD_QUALITIES.get(intervals, ChordQuality.MAJOR)


def _roman_label(degree: int, quality: ChordQuality) -> str:
    numeral = _NUMERALS[degree]
    if quality is ChordQuality.MINOR:
        return numeral.lower()
    if quality is ChordQuality.DIMINISHED:
        return numeral.lower() + "°"
    if quality is ChordQuality.AUGMENTED:
        return numeral + "+"
    return numeral


def fallback_progression(scale: Scale, length: int) -> List[Tuple[str, ChordQuality, str]]:
    """Return ``length`` tonic, subdominant and dominant triads in turn.

    Each entry is ``(root, quality, degree_label)``.
    """

    harmonic = _harmonic_scale(scale)
    result = []
    for i in range(length):
        degree = FALLBACK_DEGREES[i % len(FALLBACK_DEGREES)]
        quality = _triad_quality(harmonic, degree)
        result.append((harmonic.degrees[degree], quality, _roman_label(degree, quality)))
    return result


def resolve_progression(
    key: str,
    template: Union[str, Sequence[str], ProgressionTemplate],
    extended: bool = False,
    chord_duration: float = 1.0,
    start_position: float = 0.0,
    section: Optional[str] = None,
) -> List[ChordSpec]:
    """Resolve ``template`` into chords in ``key``.

    Parameters
    ----------
    key:
        Key string such as ``"C major"``.
    template:
        :class:`ProgressionTemplate`, progression name or list of labels.
    extended:
        Promote triads to seventh chords (see
        :func:`~composition_generator.chords.extend_quality`).
    chord_duration:
        Length of each chord in bars.
    start_position:
        Bar at which the first chord starts.
    section:
        Optional section tag stored on every chord.

    Returns
    -------
    List[ChordSpec]
        One chord per template entry, placed back to back.

    Raises
    ------
    ValueError
        If ``key`` cannot be parsed.
    """

    template = as_template(template)
    tonic, mode = parse_key(key)
    scale = resolve_scale(tonic, mode)

    resolved: List[Tuple[str, ChordQuality, str]] = []
    try:
        for index, label in enumerate(template.degrees):
            root, quality = resolve_degree(label, scale)
            override = template.quality_at(index)
            resolved.append((root, override or quality, label))
        if len(resolved) > 1 and len({(r, q) for r, q, _ in resolved}) == 1:
            raise ProgressionError("Progression collapsed into a single chord")
    except ProgressionError as exc:
        logger.warning(
            "Could not resolve progression %s in %s (%s); using I-IV-V fallback",
            list(template.degrees),
            key,
            exc,
        )
        resolved = fallback_progression(scale, len(template))

    chords = []
    for index, (root, quality, label) in enumerate(resolved):
        if extended:
            quality = extend_quality(quality)
        chord = build_chord(root, quality, CHORD_OCTAVE, degree=label)
        chords.append(
            chord.placed(start_position + index * chord_duration, chord_duration, section)
        )
    return chords
