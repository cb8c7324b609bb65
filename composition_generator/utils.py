"""Utility helpers shared across Composition Generator components.

This module collects lightweight functions that do not fit in more specific
modules. The CLI and the web API both validate user input through
:func:`validate_settings` so the two front ends report identical errors.

Usage Example
-------------
>>> from composition_generator.utils import parse_structure
>>> parse_structure("intro-verse-chorus-outro")
('intro', 'verse', 'chorus', 'outro')
>>> parse_structure("") is None
True
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Type, TypeVar, Union

from . import MAX_OCTAVE, MIN_OCTAVE

__all__ = [
    "coerce_choice",
    "parse_structure",
    "validate_rhythm",
    "validate_settings",
    "MIN_COMPLEXITY",
    "MAX_COMPLEXITY",
]

logger = logging.getLogger(__name__)

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 10

E = TypeVar("E", bound=Enum)


def coerce_choice(enum_cls: Type[E], value: object, default: E) -> E:
    """Return the member of ``enum_cls`` named by ``value``.

    ``value`` may already be a member, the member's string value or the
    member's attribute name in any case. Anything else resolves to
    ``default`` so that unknown style names degrade gracefully instead of
    aborting generation.
    """

    if isinstance(value, enum_cls):
        return value
    if value is not None:
        text = str(value).strip()
        for candidate in (text, text.lower()):
            try:
                return enum_cls(candidate)
            except ValueError:
                pass
        member = enum_cls.__members__.get(text.upper().replace(" ", "_"))
        if member is not None:
            return member
    logger.debug("Unknown %s %r; using %s", enum_cls.__name__, value, default.value)
    return default


def parse_structure(value: Union[str, Sequence[str], None]) -> Optional[Tuple[str, ...]]:
    """Normalise a section structure into a tuple of lowercase tags.

    Strings are split on ``-`` or ``,`` so ``"verse-chorus"`` and
    ``"verse, chorus"`` are equivalent. ``None``, an empty value or the word
    ``"simple"`` mean the composition has no sections and ``None`` is
    returned.

    Raises
    ------
    ValueError
        If ``value`` is neither a string nor a list of strings.
    """

    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if not text or text == "simple":
            return None
        parts: Sequence[str] = text.replace(",", "-").split("-")
    else:
        parts = _string_list(value, "Structure")
    tags = tuple(part.strip().lower() for part in parts if part.strip())
    return tags or None


def _string_list(value, label: str) -> List[str]:
    if isinstance(value, (list, tuple)) and all(isinstance(part, str) for part in value):
        return list(value)
    raise ValueError(f"{label} must be a name or a list of strings.")


def validate_rhythm(pattern: Sequence[float]) -> Tuple[float, ...]:
    """Validate a custom rhythm pattern and return it as a tuple.

    Raises
    ------
    ValueError
        If ``pattern`` is empty or contains a non-positive duration.
    """

    try:
        values = tuple(float(d) for d in pattern)
    except (TypeError, ValueError) as exc:
        raise ValueError("Rhythm pattern must contain numeric durations") from exc
    if not values:
        raise ValueError("Rhythm pattern must not be empty")
    if any(d <= 0 for d in values):
        raise ValueError("Rhythm pattern durations must be positive")
    return values


def validate_settings(settings):
    """Check user supplied composition settings.

    Parameters
    ----------
    settings:
        A :class:`~composition_generator.composition.CompositionSettings`
        instance.

    Returns
    -------
    CompositionSettings
        The same object when every field is acceptable.

    Raises
    ------
    ValueError
        Describing the first invalid field encountered.
    """

    from .scales import parse_key  # Local import avoids circular dependencies

    try:
        parse_key(settings.key)
    except ValueError as exc:
        raise ValueError(f"Invalid key: {settings.key}") from exc

    if settings.tempo <= 0:
        raise ValueError("Tempo must be a positive number.")
    if settings.bars <= 0:
        raise ValueError("Bars must be a positive integer.")
    if not MIN_COMPLEXITY <= settings.complexity <= MAX_COMPLEXITY:
        raise ValueError(
            f"Complexity must be between {MIN_COMPLEXITY} and {MAX_COMPLEXITY}."
        )
    if settings.chord_duration <= 0:
        raise ValueError("Chord duration must be positive.")
    if settings.inversion < 0:
        raise ValueError("Inversion must be zero or positive.")
    # The scale adds a closing tonic one octave above the base.
    if not MIN_OCTAVE <= settings.melody_octave <= MAX_OCTAVE - 1:
        raise ValueError(
            f"Melody octave must be between {MIN_OCTAVE} and {MAX_OCTAVE - 1}."
        )
    # Bass figures reach one octave below and one octave above the register.
    if not MIN_OCTAVE + 1 <= settings.bass_octave <= MAX_OCTAVE - 1:
        raise ValueError(
            f"Bass octave must be between {MIN_OCTAVE + 1} and {MAX_OCTAVE - 1}."
        )
    if not isinstance(settings.rhythm_pattern, str):
        validate_rhythm(settings.rhythm_pattern)
    for label, value in (
        ("Progression", settings.progression),
        ("Verse progression", settings.verse_progression),
        ("Chorus progression", settings.chorus_progression),
    ):
        if isinstance(value, str):
            continue
        if not _string_list(value, label):
            raise ValueError(f"{label} must contain at least one chord.")
    return settings
