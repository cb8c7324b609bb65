"""Chord re-voicing for smooth progressions.

The optimizer walks a progression and, for every chord after the first,
chooses among a handful of candidate voicings the one whose notes move the
least from the previous chord's voicing. The first chord keeps its root
position voicing.

Candidates for a chord with ``n`` notes, in preference order:

1. root position,
2. inversions ``1`` to ``n - 1`` (lowest note moved up an octave each time),
3. the spread voicing (every note above the lowest raised an octave).

Movement is the sum of absolute semitone differences between voices at the
same index, compared over the shorter of the two voicings. Ties go to the
earliest candidate so the result is deterministic.

Example
-------
>>> from composition_generator.chords import build_chord
>>> g, c = build_chord("G"), build_chord("C")
>>> apply_voice_leading([g, c])[1].notes
('G4', 'C5', 'E5')

Design Notes
------------
- ``numpy`` scores every candidate of a chord in one vectorized pass.
- Voicings are tuples and every helper returns new :class:`ChordSpec`
  values, so the canonical ``pitches`` of a chord are never altered.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .chords import ChordSpec
from .note_utils import midi_to_note, note_to_midi

__all__ = [
    "invert_voicing",
    "spread_voicing",
    "candidate_voicings",
    "voice_movement",
    "movement_scores",
    "choose_voicing",
    "apply_voice_leading",
    "apply_inversion",
]

Voicing = Tuple[str, ...]


def invert_voicing(pitches: Sequence[str], times: int = 1) -> Voicing:
    """Move the lowest note up an octave ``times`` times."""

    midi = [note_to_midi(p) for p in pitches]
    for _ in range(times):
        midi = midi[1:] + [midi[0] + 12]
    return tuple(midi_to_note(m) for m in midi)


def spread_voicing(pitches: Sequence[str]) -> Voicing:
    """Keep the lowest note and raise every other note by an octave."""

    midi = [note_to_midi(p) for p in pitches]
    return tuple(midi_to_note(m + 12 if i > 0 else m) for i, m in enumerate(midi))


def candidate_voicings(pitches: Sequence[str]) -> List[Voicing]:
    """Return root position, each inversion and the spread voicing."""

    root = tuple(pitches)
    candidates = [root]
    candidates.extend(invert_voicing(root, k) for k in range(1, len(root)))
    candidates.append(spread_voicing(root))
    return candidates


def voice_movement(previous: Sequence[str], candidate: Sequence[str]) -> int:
    """Total semitone movement between two voicings."""

    size = min(len(previous), len(candidate))
    if size == 0:
        return 0
    prev = np.array([note_to_midi(p) for p in previous[:size]])
    cand = np.array([note_to_midi(p) for p in candidate[:size]])
    return int(np.abs(cand - prev).sum())


def movement_scores(previous: Sequence[str], candidates: Sequence[Sequence[str]]) -> np.ndarray:
    """Return the movement score of every candidate at once.

    All ``candidates`` are voicings of the same chord and therefore share a
    length, which lets them be stacked into a single matrix.
    """

    if not candidates:
        return np.zeros(0, dtype=int)
    size = min(len(previous), len(candidates[0]))
    if size == 0:
        return np.zeros(len(candidates), dtype=int)
    prev = np.array([note_to_midi(p) for p in previous[:size]])
    matrix = np.array([[note_to_midi(p) for p in cand[:size]] for cand in candidates])
    return np.abs(matrix - prev).sum(axis=1)


def choose_voicing(previous: Sequence[str], pitches: Sequence[str]) -> Voicing:
    """Return the candidate voicing of ``pitches`` closest to ``previous``."""

    candidates = candidate_voicings(pitches)
    scores = movement_scores(previous, candidates)
    # ``argmin`` returns the first minimum, preferring root position.
    return candidates[int(np.argmin(scores))]


def apply_voice_leading(chords: Sequence[ChordSpec]) -> List[ChordSpec]:
    """Return ``chords`` re-voiced for minimal movement.

    The first chord is voiced in root position. Each later chord is voiced
    relative to the voicing just chosen for its predecessor.
    """

    result: List[ChordSpec] = []
    previous: Voicing = ()
    for index, chord in enumerate(chords):
        if index == 0 or not chord.pitches:
            voicing = tuple(chord.pitches)
        else:
            voicing = choose_voicing(previous, chord.pitches)
        result.append(chord.with_voicing(voicing))
        previous = voicing
    return result


def apply_inversion(chords: Sequence[ChordSpec], inversion: int) -> List[ChordSpec]:
    """Voice every chord in the same static inversion.

    ``inversion`` is capped at ``len(pitches) - 1`` for each chord so a
    second inversion request leaves triads and seventh chords alike in
    second inversion.
    """

    result = []
    for chord in chords:
        times = max(0, min(inversion, len(chord.pitches) - 1))
        result.append(chord.with_voicing(invert_voicing(chord.pitches, times)))
    return result
