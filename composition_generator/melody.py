"""Melody generation.

Three generators share the same building blocks:

``generate_pattern_melody``
    Cycles a rhythm pattern over the requested number of bars. Each note's
    scale position follows a contour curve with a little random deviation
    proportional to ``complexity``.

``generate_motif_melody``
    Builds a four-note seed motif and repeats it once per bar, substituting
    a transformed copy on odd bars and, with probability
    :data:`MOTIF_VARIATION_PROBABILITY`, on any later bar.

``generate_chord_melody``
    Section-aware variant used by structured compositions. It works chord by
    chord, fitting either the rhythm pattern or the motif into each chord's
    span, and snaps notes towards chord tones.

:func:`generate_arpeggio` is a small companion that spells the chords of a
progression one note at a time.

All randomness comes from an injectable ``random.Random`` so tests can
reproduce results by seeding it.

Example
-------
>>> import random
>>> from composition_generator.scales import resolve_scale
>>> notes = generate_pattern_melody(resolve_scale("C"), 4, "basic", "ascending", rng=random.Random(1))
>>> len(notes)
16
"""

# Modification Summary
# ---------------------
# * Chord-aware generation uses a louder velocity floor for chorus sections.
# * The motif mode trims notes past the final bar in the same way as the
#   pattern mode.

from __future__ import annotations

import math
import random
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from . import BEATS_PER_BAR
from .chords import ChordSpec
from .events import NoteEvent
from .motif import Motif, MotifVariation, apply_motif_variation, generate_motif, motif_duration
from .rhythm_engine import ContourType, RhythmPattern, get_contour, get_rhythm_pattern
from .scales import Scale
from .utils import MAX_COMPLEXITY, MIN_COMPLEXITY, coerce_choice

__all__ = [
    "CHORD_TONE_PROBABILITY",
    "MOTIF_VARIATION_PROBABILITY",
    "ArpeggioPattern",
    "snap_to_chord_tone",
    "generate_pattern_melody",
    "generate_motif_melody",
    "generate_chord_melody",
    "generate_arpeggio",
]

CHORD_TONE_PROBABILITY = 0.7
MOTIF_VARIATION_PROBABILITY = 0.3

# Velocities are drawn uniformly from [floor, floor + range).
VELOCITY_FLOOR = 0.7
CHORUS_VELOCITY_FLOOR = 0.8
VELOCITY_RANGE = 0.3

RhythmArg = Union[RhythmPattern, str, Sequence[float], None]


def _velocity(rng: random.Random, floor: float = VELOCITY_FLOOR) -> float:
    return floor + rng.random() * VELOCITY_RANGE


def _scale_position(contour_pos: float, scale_length: int, complexity: int, rng: random.Random) -> int:
    """Map a contour height onto a clamped scale index."""

    spread = min(max(complexity, MIN_COMPLEXITY), MAX_COMPLEXITY) / 10
    position = math.floor(contour_pos * scale_length + rng.uniform(-spread, spread))
    return min(max(position, 0), scale_length - 1)


def _use_variation(index: int, rng: random.Random) -> bool:
    # Odd positions always vary; the random draw only happens otherwise.
    return index % 2 == 1 or (index > 0 and rng.random() < MOTIF_VARIATION_PROBABILITY)


def snap_to_chord_tone(
    scale: Scale,
    index: int,
    chord: Optional[ChordSpec],
    rng: random.Random,
    probability: float = CHORD_TONE_PROBABILITY,
) -> int:
    """Nudge ``index`` onto a chord tone of ``chord``.

    With ``probability``, if the scale pitch at ``index`` is not one of the
    chord's pitch classes, a chord pitch class is chosen at random and the
    first scale index with that pitch class is returned. When the scale does
    not contain the chosen pitch class the original index is kept.
    """

    if chord is None or not chord.notes:
        return index
    if rng.random() >= probability:
        return index
    chord_classes = chord.pitch_classes
    if scale.pitch_classes[index] in chord_classes:
        return index
    target = rng.choice(chord_classes)
    snapped = scale.index_of(target)
    return index if snapped is None else snapped


def generate_pattern_melody(
    scale: Scale,
    bars: int,
    rhythm: RhythmArg = RhythmPattern.BASIC,
    contour: Union[ContourType, str, None] = ContourType.RANDOM,
    complexity: int = 5,
    rng: Optional[random.Random] = None,
) -> List[NoteEvent]:
    """Generate a melody by walking ``rhythm`` along ``contour``.

    Parameters
    ----------
    scale:
        Scale providing the available pitches.
    bars:
        Number of 4/4 bars to fill.
    rhythm:
        Rhythm pattern name or explicit duration vector.
    contour:
        Contour name controlling the overall melodic shape.
    complexity:
        Random deviation from the contour in tenths of a scale step, from 1
        to 10.
    rng:
        Random source. A fresh unseeded generator is used when omitted.

    Returns
    -------
    List[NoteEvent]
        Notes starting before ``bars * 4`` beats. The last note may extend
        past the end of the final bar.
    """

    rng = rng or random.Random()
    pattern = get_rhythm_pattern(rhythm)
    contour_fn = get_contour(contour)
    total_beats = bars * BEATS_PER_BAR
    total_patterns = math.ceil(total_beats / sum(pattern))
    total_steps = total_patterns * len(pattern)

    notes: List[NoteEvent] = []
    current_time = 0.0
    for step in range(total_steps):
        duration = pattern[step % len(pattern)]
        height = contour_fn(step / total_steps, rng)
        index = _scale_position(height, len(scale), complexity, rng)
        notes.append(NoteEvent(scale[index], current_time, duration, _velocity(rng)))
        current_time += duration
    return [n for n in notes if n.start_time < total_beats]


def generate_motif_melody(
    scale: Scale,
    bars: int,
    variation: Union[MotifVariation, str, None] = MotifVariation.TRANSPOSE,
    rng: Optional[random.Random] = None,
    motif: Optional[Motif] = None,
) -> List[NoteEvent]:
    """Generate a melody by repeating and varying a seed motif once per bar.

    ``motif`` may be supplied to reuse an existing seed; otherwise a new one
    is drawn from ``rng``. Notes starting at or after ``bars * 4`` beats are
    dropped.
    """

    rng = rng or random.Random()
    seed = tuple(motif) if motif else generate_motif(len(scale), rng=rng)
    total_beats = bars * BEATS_PER_BAR

    notes: List[NoteEvent] = []
    current_time = 0.0
    for bar in range(bars):
        current = apply_motif_variation(seed, len(scale), variation) if _use_variation(bar, rng) else seed
        for note in current:
            index = min(max(note.scale_index, 0), len(scale) - 1)
            notes.append(NoteEvent(scale[index], current_time, note.duration, _velocity(rng)))
            current_time += note.duration
    return [n for n in notes if n.start_time < total_beats]


def generate_chord_melody(
    scale: Scale,
    chords: Sequence[ChordSpec],
    rhythm: RhythmArg = RhythmPattern.BASIC,
    contour: Union[ContourType, str, None] = ContourType.RANDOM,
    complexity: int = 5,
    rng: Optional[random.Random] = None,
    section: Optional[str] = None,
    motif: Optional[Motif] = None,
    variation: Union[MotifVariation, str, None] = MotifVariation.TRANSPOSE,
    first_chord_index: int = 0,
) -> List[NoteEvent]:
    """Generate melody notes chord by chord.

    Each chord spans ``chord.duration * 4`` beats starting at
    ``chord.position * 4``.

    Without ``motif`` the rhythm pattern is repeated enough times to cover
    the chord and generation stops at the first note that would start at or
    after the chord's end. Chorus sections use a louder velocity floor.

    With ``motif`` the seed (or its variation on odd chords and, with
    probability :data:`MOTIF_VARIATION_PROBABILITY`, on later chords) is
    stretched to exactly fill the chord.

    ``first_chord_index`` is the position of ``chords[0]`` within the whole
    progression so that odd/even alternation continues across sections.
    Every note is passed through :func:`snap_to_chord_tone`.
    """

    rng = rng or random.Random()
    pattern = get_rhythm_pattern(rhythm)
    contour_fn = get_contour(contour)
    floor = CHORUS_VELOCITY_FLOOR if section == "chorus" else VELOCITY_FLOOR
    notes: List[NoteEvent] = []

    for offset, chord in enumerate(chords):
        chord_index = first_chord_index + offset
        chord_start = chord.position * BEATS_PER_BAR
        chord_beats = chord.duration * BEATS_PER_BAR
        current_time = chord_start

        if motif:
            if _use_variation(chord_index, rng):
                current = apply_motif_variation(motif, len(scale), variation)
            else:
                current = tuple(motif)
            stretch = chord_beats / motif_duration(current)
            for note in current:
                index = min(max(note.scale_index, 0), len(scale) - 1)
                index = snap_to_chord_tone(scale, index, chord, rng)
                duration = note.duration * stretch
                notes.append(NoteEvent(scale[index], current_time, duration, _velocity(rng), section))
                current_time += duration
            continue

        repetitions = math.ceil(chord_beats / sum(pattern))
        total_steps = repetitions * len(pattern)
        chord_end = chord_start + chord_beats
        for step in range(total_steps):
            if current_time >= chord_end:
                break
            duration = pattern[step % len(pattern)]
            height = contour_fn(step / total_steps, rng)
            index = _scale_position(height, len(scale), complexity, rng)
            index = snap_to_chord_tone(scale, index, chord, rng)
            notes.append(NoteEvent(scale[index], current_time, duration, _velocity(rng, floor), section))
            current_time += duration
    return notes


class ArpeggioPattern(str, Enum):
    UP = "up"
    DOWN = "down"
    UP_DOWN = "updown"
    DOWN_UP = "downup"
    RANDOM = "random"
    INSIDE_OUT = "insideout"
    OUTSIDE_IN = "outsidein"


def _inside_out(notes: Sequence[str], rng: random.Random) -> List[str]:
    middle = len(notes) // 2
    return [
        notes[middle + i // 2] if i % 2 == 0 else notes[middle - math.ceil(i / 2)]
        for i in range(len(notes))
    ]


def _outside_in(notes: Sequence[str], rng: random.Random) -> List[str]:
    return [
        notes[i // 2] if i % 2 == 0 else notes[len(notes) - math.ceil(i / 2)]
        for i in range(len(notes))
    ]


def _shuffled(notes: Sequence[str], rng: random.Random) -> List[str]:
    result = list(notes)
    rng.shuffle(result)
    return result


_ARPEGGIOS: Dict[ArpeggioPattern, Callable[[Sequence[str], random.Random], List[str]]] = {
    ArpeggioPattern.UP: lambda notes, rng: list(notes),
    ArpeggioPattern.DOWN: lambda notes, rng: list(reversed(notes)),
    ArpeggioPattern.UP_DOWN: lambda notes, rng: list(notes) + list(reversed(notes[1:-1])),
    ArpeggioPattern.DOWN_UP: lambda notes, rng: list(reversed(notes)) + list(notes[1:-1]),
    ArpeggioPattern.RANDOM: _shuffled,
    ArpeggioPattern.INSIDE_OUT: _inside_out,
    ArpeggioPattern.OUTSIDE_IN: _outside_in,
}


def generate_arpeggio(
    chords: Sequence[ChordSpec],
    pattern: Union[ArpeggioPattern, str, None] = ArpeggioPattern.UP,
    notes_per_chord: int = 4,
    rng: Optional[random.Random] = None,
) -> List[NoteEvent]:
    """Spell each chord as ``notes_per_chord`` evenly spaced notes.

    The chord's sounding notes are reordered by ``pattern`` (unknown names
    use ``"up"``) and cycled when ``notes_per_chord`` exceeds their number.
    Chords are laid out back to back from beat zero.

    Raises
    ------
    ValueError
        If ``notes_per_chord`` is not positive.
    """

    if notes_per_chord <= 0:
        raise ValueError("notes_per_chord must be positive")
    rng = rng or random.Random()
    order = _ARPEGGIOS[coerce_choice(ArpeggioPattern, pattern, ArpeggioPattern.UP)]

    events: List[NoteEvent] = []
    current_time = 0.0
    for chord in chords:
        duration = chord.duration * BEATS_PER_BAR / notes_per_chord
        spelled = order(chord.notes, rng)
        if not spelled:
            current_time += chord.duration * BEATS_PER_BAR
            continue
        for i in range(notes_per_chord):
            events.append(
                NoteEvent(spelled[i % len(spelled)], current_time, duration, _velocity(rng), chord.section)
            )
            current_time += duration
    return events
