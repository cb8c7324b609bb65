"""Motif generation and transformation helpers.

A motif is a short tuple of :class:`MotifNote` values, each holding a scale
index and a duration in beats. Transforms are pure functions returning a new
motif. After every transform the scale indices are clamped into
``[0, scale_length)`` so a motif can always be mapped back onto its scale.

Example
-------
>>> seed = (MotifNote(0, 1.0), MotifNote(2, 0.5), MotifNote(4, 1.5))
>>> retrograde(seed)
(MotifNote(scale_index=4, duration=1.5), MotifNote(scale_index=2, duration=0.5), MotifNote(scale_index=0, duration=1.0))
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Sequence, Tuple, Union

__all__ = [
    "MotifNote",
    "Motif",
    "MotifVariation",
    "MOTIF_DURATIONS",
    "SEED_MOTIF_LENGTH",
    "TRANSPOSE_STEPS",
    "generate_motif",
    "transpose",
    "invert",
    "retrograde",
    "augment",
    "diminish",
    "apply_motif_variation",
    "motif_duration",
]

logger = logging.getLogger(__name__)

MOTIF_DURATIONS: Tuple[float, ...] = (0.5, 1.0, 1.5)
SEED_MOTIF_LENGTH = 4
TRANSPOSE_STEPS = 2


class MotifNote(NamedTuple):
    scale_index: int
    duration: float


Motif = Tuple[MotifNote, ...]


class MotifVariation(str, Enum):
    TRANSPOSE = "transpose"
    INVERT = "invert"
    RETROGRADE = "retrograde"
    AUGMENT = "augment"
    DIMINISH = "diminish"


def _clamp(motif: Sequence[MotifNote], scale_length: int) -> Motif:
    top = max(0, scale_length - 1)
    return tuple(MotifNote(min(max(n.scale_index, 0), top), n.duration) for n in motif)


def generate_motif(scale_length: int, length: int = SEED_MOTIF_LENGTH, rng: Optional[random.Random] = None) -> Motif:
    """Return ``length`` random notes drawn from a scale of ``scale_length``.

    Raises
    ------
    ValueError
        If ``scale_length`` or ``length`` is not positive.
    """

    if scale_length <= 0:
        raise ValueError("scale_length must be positive")
    if length <= 0:
        raise ValueError("length must be positive")
    rng = rng or random.Random()
    return tuple(
        MotifNote(rng.randrange(scale_length), rng.choice(MOTIF_DURATIONS))
        for _ in range(length)
    )


def transpose(motif: Sequence[MotifNote], scale_length: int, steps: int = TRANSPOSE_STEPS) -> Motif:
    """Shift every note ``steps`` scale degrees, wrapping within the scale."""

    return tuple(MotifNote((n.scale_index + steps) % scale_length, n.duration) for n in motif)


def invert(motif: Sequence[MotifNote], scale_length: int) -> Motif:
    """Mirror every index around the middle of the scale."""

    return _clamp(
        [MotifNote(scale_length - 1 - n.scale_index, n.duration) for n in motif],
        scale_length,
    )


def retrograde(motif: Sequence[MotifNote], scale_length: Optional[int] = None) -> Motif:
    """Reverse the note order."""

    reversed_motif = tuple(reversed(tuple(motif)))
    return _clamp(reversed_motif, scale_length) if scale_length else reversed_motif


def augment(motif: Sequence[MotifNote], scale_length: Optional[int] = None) -> Motif:
    """Double every duration."""

    return tuple(MotifNote(n.scale_index, n.duration * 2) for n in motif)


def diminish(motif: Sequence[MotifNote], scale_length: Optional[int] = None) -> Motif:
    """Halve every duration."""

    return tuple(MotifNote(n.scale_index, n.duration * 0.5) for n in motif)


_VARIATIONS: Dict[MotifVariation, Callable[[Sequence[MotifNote], int], Motif]] = {
    MotifVariation.TRANSPOSE: transpose,
    MotifVariation.INVERT: invert,
    MotifVariation.RETROGRADE: retrograde,
    MotifVariation.AUGMENT: augment,
    MotifVariation.DIMINISH: diminish,
}


def apply_motif_variation(
    motif: Sequence[MotifNote],
    scale_length: int,
    variation: Union[MotifVariation, str, None],
) -> Motif:
    """Apply the named transform to ``motif``.

    Unknown names such as ``"rhythmic"`` leave the motif unchanged.
    """

    if not isinstance(variation, MotifVariation):
        variation = str(variation).strip().lower()
    try:
        func = _VARIATIONS[MotifVariation(variation)]
    except ValueError:
        logger.debug("Unknown motif variation %r; leaving motif unchanged", variation)
        return _clamp(motif, scale_length)
    return _clamp(func(motif, scale_length), scale_length)


def motif_duration(motif: Sequence[MotifNote]) -> float:
    return sum(n.duration for n in motif)
