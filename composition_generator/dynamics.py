"""Expressive shaping of note sequences.

Three stages are applied in a fixed order by :func:`apply_expression`:

1. **Articulation** scales every duration and velocity by a style-specific
   pair of multipliers.
2. **Dynamics** scales velocity by a curve over the note's position ``i`` in
   a sequence of ``n`` notes.
3. **Humanization** jitters start time, velocity and duration by small
   random amounts and clamps the results into playable ranges.

Velocities are not clamped between the first two stages, so a staccato
accent may briefly exceed ``1.0``. The pipeline always finishes with a
clamp into ``[0, 1]``, either inside humanization or explicitly when
humanization is disabled.

Each stage returns new :class:`~composition_generator.events.NoteEvent`
objects; the input sequence is never modified.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .events import NoteEvent
from .utils import coerce_choice

__all__ = [
    "Articulation",
    "Dynamics",
    "ARTICULATIONS",
    "DYNAMICS_CURVES",
    "HumanizeOptions",
    "MELODY_HUMANIZE",
    "BASS_HUMANIZE",
    "apply_articulation",
    "apply_dynamics",
    "humanize_notes",
    "clamp_velocities",
    "apply_expression",
]

MIN_VELOCITY = 0.1
MAX_VELOCITY = 1.0
MIN_DURATION = 0.1


class Articulation(str, Enum):
    LEGATO = "legato"
    STACCATO = "staccato"
    MARCATO = "marcato"
    TENUTO = "tenuto"
    NONE = "none"


class Dynamics(str, Enum):
    CRESCENDO = "crescendo"
    DIMINUENDO = "diminuendo"
    SWELL = "swell"
    FADE = "fade"
    ACCENT = "accent"
    NONE = "none"


# (duration multiplier, velocity multiplier)
ARTICULATIONS: Dict[Articulation, Tuple[float, float]] = {
    Articulation.LEGATO: (1.0, 0.9),
    Articulation.STACCATO: (0.5, 1.1),
    Articulation.MARCATO: (0.8, 1.2),
    Articulation.TENUTO: (1.0, 1.0),
}

# Velocity multiplier for note ``i`` of ``n``.
DYNAMICS_CURVES: Dict[Dynamics, Callable[[int, int], float]] = {
    Dynamics.CRESCENDO: lambda i, n: 0.7 + (i / n) * 0.3,
    Dynamics.DIMINUENDO: lambda i, n: 1.0 - (i / n) * 0.3,
    Dynamics.SWELL: lambda i, n: 0.7 + math.sin(i / n * math.pi) * 0.3,
    Dynamics.FADE: lambda i, n: 1.0 - (i / n) ** 2 * 0.5,
    Dynamics.ACCENT: lambda i, n: 1.0 if i % 4 == 0 else 0.8,
}


@dataclass(frozen=True)
class HumanizeOptions:
    """Maximum random deviation applied by :func:`humanize_notes`.

    ``timing_variation`` is in beats, ``velocity_variation`` in velocity
    units and ``duration_variation`` is a fraction of the note's duration.
    """

    timing_variation: float = 0.02
    velocity_variation: float = 0.1
    duration_variation: float = 0.05


MELODY_HUMANIZE = HumanizeOptions()
BASS_HUMANIZE = HumanizeOptions(timing_variation=0.01, velocity_variation=0.05, duration_variation=0.02)


def _articulation(name: Union[Articulation, str, None]) -> Articulation:
    if name is None:
        return Articulation.NONE
    # Unrecognised articulation names play legato.
    return coerce_choice(Articulation, name, Articulation.LEGATO)


def apply_articulation(notes: Sequence[NoteEvent], articulation: Union[Articulation, str, None]) -> List[NoteEvent]:
    """Scale duration and velocity of ``notes`` by ``articulation``.

    ``"none"`` returns the notes unchanged. Velocities are not clamped.
    """

    style = _articulation(articulation)
    if style is Articulation.NONE:
        return list(notes)
    length_factor, velocity_factor = ARTICULATIONS[style]
    return [
        replace(n, duration=n.duration * length_factor, velocity=n.velocity * velocity_factor)
        for n in notes
    ]


def apply_dynamics(notes: Sequence[NoteEvent], dynamics: Union[Dynamics, str, None]) -> List[NoteEvent]:
    """Scale velocities along the sequence according to ``dynamics``.

    ``"none"`` and unknown names return the notes unchanged. Velocities are
    not clamped.
    """

    curve = DYNAMICS_CURVES.get(coerce_choice(Dynamics, dynamics, Dynamics.NONE))
    if curve is None or not notes:
        return list(notes)
    total = len(notes)
    return [replace(n, velocity=n.velocity * curve(i, total)) for i, n in enumerate(notes)]


def humanize_notes(
    notes: Sequence[NoteEvent],
    options: HumanizeOptions = MELODY_HUMANIZE,
    rng: Optional[random.Random] = None,
) -> List[NoteEvent]:
    """Jitter timing, velocity and duration of ``notes``.

    Each quantity is offset by a uniform draw in ``[-variation, variation]``.
    Results are clamped so that start times stay at or after zero,
    velocities stay within ``[0.1, 1.0]`` and durations stay at least
    ``0.1`` beats.
    """

    rng = rng or random.Random()
    result = []
    for n in notes:
        start = n.start_time + rng.uniform(-1, 1) * options.timing_variation
        velocity = n.velocity + rng.uniform(-1, 1) * options.velocity_variation
        duration = n.duration * (1 + rng.uniform(-1, 1) * options.duration_variation)
        result.append(
            replace(
                n,
                start_time=max(0.0, start),
                velocity=min(MAX_VELOCITY, max(MIN_VELOCITY, velocity)),
                duration=max(MIN_DURATION, duration),
            )
        )
    return result


def clamp_velocities(notes: Sequence[NoteEvent]) -> List[NoteEvent]:
    """Clamp every velocity into ``[0, 1]``."""

    return [replace(n, velocity=min(MAX_VELOCITY, max(0.0, n.velocity))) for n in notes]


def apply_expression(
    notes: Sequence[NoteEvent],
    articulation: Union[Articulation, str, None] = Articulation.NONE,
    dynamics: Union[Dynamics, str, None] = Dynamics.NONE,
    humanize: bool = False,
    options: HumanizeOptions = MELODY_HUMANIZE,
    rng: Optional[random.Random] = None,
) -> List[NoteEvent]:
    """Run articulation, dynamics and optional humanization in order."""

    shaped = apply_dynamics(apply_articulation(notes, articulation), dynamics)
    if humanize:
        return humanize_notes(shaped, options, rng)
    return clamp_velocities(shaped)
