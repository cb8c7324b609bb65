"""Rhythm patterns and melodic contour curves.

Rhythm patterns are short duration vectors (in beats) that the melody
generator cycles through. Contours are functions mapping a normalised
position ``x`` in ``[0, 1]`` to a height in ``[0, 1]`` which is then scaled
onto the scale. Decoupling rhythm from pitch in this way lets any pattern be
combined with any contour.

Unknown names fall back to :data:`DEFAULT_RHYTHM` and
:data:`DEFAULT_CONTOUR` respectively so a stale setting never stops
generation.
"""

from __future__ import annotations

import math
import random
from enum import Enum
from typing import Callable, Dict, Sequence, Tuple, Union

from .utils import coerce_choice, validate_rhythm

__all__ = [
    "RhythmPattern",
    "ContourType",
    "RHYTHM_PATTERNS",
    "CONTOURS",
    "DEFAULT_RHYTHM",
    "DEFAULT_CONTOUR",
    "get_rhythm_pattern",
    "get_contour",
]

ContourFunc = Callable[[float, random.Random], float]


class RhythmPattern(str, Enum):
    BASIC = "basic"
    SYNCOPATED = "syncopated"
    TRIPLET = "triplet"
    COMPLEX = "complex"
    WALTZ = "waltz"
    SWING = "swing"
    DOTTED = "dotted"
    MARCH = "march"


class ContourType(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"
    ARCH = "arch"
    VALLEY = "valley"
    RANDOM = "random"
    STATIC = "static"
    WAVE = "wave"


RHYTHM_PATTERNS: Dict[RhythmPattern, Tuple[float, ...]] = {
    RhythmPattern.BASIC: (1, 1, 1, 1),
    RhythmPattern.SYNCOPATED: (0.5, 0.5, 1, 0.5, 1.5),
    RhythmPattern.TRIPLET: (0.33, 0.33, 0.33, 1, 1, 1),
    RhythmPattern.COMPLEX: (0.25, 0.25, 0.5, 0.75, 0.25, 1, 1),
    RhythmPattern.WALTZ: (1, 0.5, 0.5, 1, 1),
    RhythmPattern.SWING: (0.67, 0.33, 0.67, 0.33),
    RhythmPattern.DOTTED: (1.5, 0.5, 1.5, 0.5),
    RhythmPattern.MARCH: (0.75, 0.25, 0.5, 0.5, 1, 1),
}

DEFAULT_RHYTHM = RhythmPattern.BASIC
DEFAULT_CONTOUR = ContourType.RANDOM

CONTOURS: Dict[ContourType, ContourFunc] = {
    ContourType.ASCENDING: lambda x, rng: x,
    ContourType.DESCENDING: lambda x, rng: 1 - x,
    ContourType.ARCH: lambda x, rng: 1 - abs(x - 0.5) * 2,
    ContourType.VALLEY: lambda x, rng: abs(x - 0.5) * 2,
    ContourType.RANDOM: lambda x, rng: rng.random(),
    ContourType.STATIC: lambda x, rng: 0.5,
    ContourType.WAVE: lambda x, rng: math.sin(x * math.pi * 2) * 0.5 + 0.5,
}


def get_rhythm_pattern(pattern: Union[RhythmPattern, str, Sequence[float], None]) -> Tuple[float, ...]:
    """Return the duration vector for ``pattern``.

    ``pattern`` may be a :class:`RhythmPattern`, its name, or an explicit
    sequence of positive durations.

    Raises
    ------
    ValueError
        If an explicit sequence is empty or contains non-positive values.
    """

    if pattern is not None and not isinstance(pattern, (str, RhythmPattern)):
        return validate_rhythm(pattern)
    return RHYTHM_PATTERNS[coerce_choice(RhythmPattern, pattern, DEFAULT_RHYTHM)]


def get_contour(contour: Union[ContourType, str, None]) -> ContourFunc:
    """Return the contour function registered for ``contour``."""

    return CONTOURS[coerce_choice(ContourType, contour, DEFAULT_CONTOUR)]
