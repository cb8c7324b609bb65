"""Bass line generation from chord roots.

Each pattern is a one-bar figure built from the chord's root (and, for the
arpeggio pattern, the chord's notes) in the bass register. Figures are
returned with start times relative to the chord; :func:`generate_bass_line`
places them back to back along the progression.

Pattern summary (times and durations in beats):

================  ==============================================================
``basic``         root held for the whole chord
``walking``       root, fifth, octave, fifth on beats 0 to 3
``arpeggio``      chord notes cycled one per beat, accent every fourth note
``octaves``       root alternating with the root an octave lower
``fifths``        root then fifth, two beats each
``groove``        syncopated root and fifth figure
================  ==============================================================

Patterns that need an interval above the root fall back to ``basic`` when
the chord root is missing or cannot be parsed.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from . import BEATS_PER_BAR
from .chords import ChordSpec
from .events import NoteEvent
from .note_utils import midi_to_note, note_to_midi, pitch_class
from .utils import coerce_choice

__all__ = [
    "BassPattern",
    "BASS_PATTERNS",
    "DEFAULT_BASS_PATTERN",
    "DEFAULT_BASS_OCTAVE",
    "generate_bass_notes",
    "generate_bass_line",
]

logger = logging.getLogger(__name__)

DEFAULT_BASS_OCTAVE = 2
# Pitch class used when a chord has no usable root.
DEFAULT_BASS_ROOT = "C"

FIFTH = 7
OCTAVE = 12


class BassPattern(str, Enum):
    BASIC = "basic"
    WALKING = "walking"
    ARPEGGIO = "arpeggio"
    OCTAVES = "octaves"
    FIFTHS = "fifths"
    GROOVE = "groove"


DEFAULT_BASS_PATTERN = BassPattern.BASIC

BassFigure = Callable[[ChordSpec, float, int], List[NoteEvent]]


def _root(chord: ChordSpec) -> Optional[str]:
    try:
        return pitch_class(chord.root)
    except (TypeError, ValueError):
        return None


def _root_midi(chord: ChordSpec, octave: int) -> Optional[int]:
    root = _root(chord)
    if root is None:
        return None
    try:
        return note_to_midi(f"{root}{octave}")
    except ValueError:
        return None


def _figure(chord: ChordSpec, root_midi: int, steps) -> List[NoteEvent]:
    """Build events from ``(semitones, start, duration, velocity)`` steps."""

    return [
        NoteEvent(midi_to_note(root_midi + semitones), start, duration, velocity, chord.section)
        for semitones, start, duration, velocity in steps
    ]


def basic(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    root = _root(chord) or DEFAULT_BASS_ROOT
    return [NoteEvent(f"{root}{octave}", 0.0, duration, 0.9, chord.section)]


def walking(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    root = _root_midi(chord, octave)
    if root is None:
        return basic(chord, duration, octave)
    return _figure(
        chord,
        root,
        [(0, 0, 1, 0.9), (FIFTH, 1, 1, 0.8), (OCTAVE, 2, 1, 0.85), (FIFTH, 3, 1, 0.8)],
    )


def arpeggio(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    classes = []
    for note in chord.notes:
        try:
            classes.append(pitch_class(note))
        except ValueError:
            logger.warning("Skipping unparsable chord note %r in bass arpeggio", note)
    if not classes:
        return basic(chord, duration, octave)
    events = []
    for i in range(math.ceil(duration)):
        velocity = 0.85 + (0.1 if i % 4 == 0 else 0.0)
        events.append(
            NoteEvent(f"{classes[i % len(classes)]}{octave}", float(i), 1.0, velocity, chord.section)
        )
    return events


def octaves(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    root = _root_midi(chord, octave)
    if root is None or root < OCTAVE:
        return basic(chord, duration, octave)
    return _figure(
        chord,
        root,
        [(0, 0, 1, 0.9), (-OCTAVE, 1, 1, 0.85), (0, 2, 1, 0.9), (-OCTAVE, 3, 1, 0.85)],
    )


def fifths(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    root = _root_midi(chord, octave)
    if root is None:
        return basic(chord, duration, octave)
    return _figure(chord, root, [(0, 0, 2, 0.9), (FIFTH, 2, 2, 0.85)])


def groove(chord: ChordSpec, duration: float, octave: int) -> List[NoteEvent]:
    root = _root_midi(chord, octave)
    if root is None:
        return basic(chord, duration, octave)
    return _figure(
        chord,
        root,
        [
            (0, 0, 0.75, 0.95),
            (0, 1, 0.25, 0.7),
            (FIFTH, 1.5, 0.5, 0.8),
            (0, 2, 1, 0.9),
            (FIFTH, 3, 0.5, 0.75),
            (0, 3.5, 0.5, 0.85),
        ],
    )


BASS_PATTERNS: Dict[BassPattern, BassFigure] = {
    BassPattern.BASIC: basic,
    BassPattern.WALKING: walking,
    BassPattern.ARPEGGIO: arpeggio,
    BassPattern.OCTAVES: octaves,
    BassPattern.FIFTHS: fifths,
    BassPattern.GROOVE: groove,
}


def generate_bass_notes(
    chord: ChordSpec,
    pattern: Union[BassPattern, str, None] = DEFAULT_BASS_PATTERN,
    duration: Optional[float] = None,
    octave: int = DEFAULT_BASS_OCTAVE,
) -> List[NoteEvent]:
    """Return the bass figure for one chord with chord-relative start times.

    Parameters
    ----------
    chord:
        Chord supplying the root and, for ``arpeggio``, the notes.
    pattern:
        Pattern name. Unknown names use ``basic``.
    duration:
        Chord length in beats. Defaults to ``chord.duration * 4``.
    octave:
        Bass register octave.
    """

    if duration is None:
        duration = chord.duration * BEATS_PER_BAR
    figure = BASS_PATTERNS[coerce_choice(BassPattern, pattern, DEFAULT_BASS_PATTERN)]
    return figure(chord, duration, octave)


def generate_bass_line(
    chords: Sequence[ChordSpec],
    pattern: Union[BassPattern, str, None] = DEFAULT_BASS_PATTERN,
    octave: int = DEFAULT_BASS_OCTAVE,
    pattern_for: Optional[Callable[[ChordSpec], Union[BassPattern, str, None]]] = None,
) -> List[NoteEvent]:
    """Return a bass line for ``chords`` with absolute start times.

    Chords are laid out consecutively from beat zero. ``pattern_for`` may
    pick a different pattern per chord (structured compositions use it to
    vary the figure by section); otherwise ``pattern`` is used throughout.
    """

    events: List[NoteEvent] = []
    current_time = 0.0
    for chord in chords:
        duration = chord.duration * BEATS_PER_BAR
        chosen = pattern_for(chord) if pattern_for else pattern
        for note in generate_bass_notes(chord, chosen, duration, octave):
            events.append(replace(note, start_time=current_time + note.start_time))
        current_time += duration
    return events
