"""Utility functions for translating note names to MIDI numbers.

This module groups helpers dealing with note representation conversions.
Pitch names are written in scientific pitch notation (``C4`` is middle C)
and every helper that produces a name spells accidentals with sharps.

Example
-------
>>> from composition_generator.note_utils import note_to_midi, pitch_class
>>> note_to_midi("C4")
60
>>> pitch_class("Bb3")
'A#'
"""

# Modification Summary
# ---------------------
# * ``note_to_midi`` computes semitones from the letter and each accidental
#   separately so spellings that cross an octave boundary (``B#3``, ``Cb4``)
#   resolve to the correct MIDI number.
# * Unicode accidentals (``♯``/``♭``) and double accidentals are accepted.
# * Added ``pitch_class`` for code that works with pitch classes rather than
#   absolute pitches.
# * Both parser caches are bounded by ``NOTE_CACHE_SIZE``.

from __future__ import annotations

import logging
import re
from functools import lru_cache

from . import NOTES

__all__ = ["note_to_midi", "midi_to_note", "pitch_class", "NOTE_CACHE_SIZE"]

_LETTER_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_ACCIDENTAL_SEMITONES = {"#": 1, "b": -1}

_NOTE_RE = re.compile(r"([A-Ga-g])([#b]*)(-?\d+)")
_PITCH_CLASS_RE = re.compile(r"([A-Ga-g])([#b]*)(-?\d+)?")

# Each parser cache keeps at most this many distinct spellings.
NOTE_CACHE_SIZE = 512


def _normalise_accidentals(text: str) -> str:
    return text.strip().replace("♯", "#").replace("♭", "b")


def _semitone(letter: str, accidentals: str) -> int:
    offset = sum(_ACCIDENTAL_SEMITONES[a] for a in accidentals)
    return _LETTER_SEMITONES[letter.upper()] + offset


@lru_cache(maxsize=NOTE_CACHE_SIZE)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative or contain
        multiple digits.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is not properly formatted or if the computed MIDI value
        falls outside the allowed ``0-127`` range.
    """

    match = _NOTE_RE.fullmatch(_normalise_accidentals(str(note)))
    if not match:
        logging.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")

    letter, accidentals, octave_str = match.groups()
    # MIDI octave numbers are offset by one relative to scientific pitch
    # notation. Accidentals are applied after the octave so ``B#3`` lands on
    # middle C.
    midi_val = (int(octave_str) + 1) * 12 + _semitone(letter, accidentals)

    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )

    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    Parameters
    ----------
    midi_note:
        Integer representing the MIDI note number. Valid values range from
        ``0`` (``C-1``) through ``127`` (``G9``).

    Returns
    -------
    str
        Note name with octave, e.g. ``C4``.

    Raises
    ------
    ValueError
        If ``midi_note`` is outside the inclusive ``0-127`` range.

    Examples
    --------
    >>> midi_to_note(61)
    'C#4'
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")

    octave = midi_note // 12 - 1
    name = NOTES[midi_note % 12]
    return f"{name}{octave}"


@lru_cache(maxsize=NOTE_CACHE_SIZE)
def pitch_class(name: str) -> str:
    """Return the sharp-spelled pitch class of ``name``.

    ``name`` may be a bare pitch class (``"Eb"``) or a full pitch (``"Eb4"``);
    any octave number is discarded.

    Raises
    ------
    ValueError
        If ``name`` does not start with a valid note letter.
    """

    match = _PITCH_CLASS_RE.fullmatch(_normalise_accidentals(str(name)))
    if not match:
        raise ValueError(f"Invalid pitch class: {name}")
    letter, accidentals, _ = match.groups()
    return NOTES[_semitone(letter, accidentals) % 12]
