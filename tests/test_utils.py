"""Tests for shared helpers in :mod:`composition_generator.utils`.

``validate_settings`` backs both the CLI and the web API, so the tests
focus on the exact fields it rejects.
"""

from __future__ import annotations

import pytest

from composition_generator.composition import CompositionSettings
from composition_generator.dynamics import Articulation
from composition_generator.utils import (
    coerce_choice,
    parse_structure,
    validate_rhythm,
    validate_settings,
)


def test_coerce_choice_accepts_values_and_names():
    assert coerce_choice(Articulation, "staccato", Articulation.NONE) is Articulation.STACCATO
    assert coerce_choice(Articulation, "Marcato", Articulation.NONE) is Articulation.MARCATO
    assert coerce_choice(Articulation, "tenuto ", Articulation.NONE) is Articulation.TENUTO
    assert coerce_choice(Articulation, Articulation.LEGATO, Articulation.NONE) is Articulation.LEGATO
    assert coerce_choice(Articulation, "nope", Articulation.NONE) is Articulation.NONE
    assert coerce_choice(Articulation, None, Articulation.LEGATO) is Articulation.LEGATO


def test_parse_structure():
    assert parse_structure("intro-verse-chorus-outro") == ("intro", "verse", "chorus", "outro")
    assert parse_structure("Verse, Chorus") == ("verse", "chorus")
    assert parse_structure(["verse", "Bridge"]) == ("verse", "bridge")
    assert parse_structure("simple") is None
    assert parse_structure("") is None
    assert parse_structure(None) is None


@pytest.mark.parametrize("value", [7, ["verse", 2], {"verse": 1}])
def test_parse_structure_rejects_non_strings(value):
    with pytest.raises(ValueError, match="Structure"):
        parse_structure(value)


def test_validate_rhythm():
    assert validate_rhythm([1, "0.5"]) == (1.0, 0.5)
    with pytest.raises(ValueError):
        validate_rhythm([])
    with pytest.raises(ValueError):
        validate_rhythm([1, -1])
    with pytest.raises(ValueError):
        validate_rhythm(["fast"])


def test_validate_settings_accepts_defaults():
    settings = CompositionSettings()
    assert validate_settings(settings) is settings


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("key", "H major", "Invalid key"),
        ("tempo", 0, "Tempo"),
        ("bars", -1, "Bars"),
        ("complexity", 11, "Complexity"),
        ("complexity", 0, "Complexity"),
        ("chord_duration", 0.0, "Chord duration"),
        ("inversion", -1, "Inversion"),
        ("melody_octave", 8, "Melody octave"),
        ("bass_octave", 0, "Bass octave"),
        ("rhythm_pattern", [1, 0], "Rhythm"),
        ("progression", [], "Progression"),
        ("progression", 5, "Progression"),
        ("verse_progression", ["I", None], "Verse progression"),
        ("chorus_progression", 3, "Chorus progression"),
    ],
)
def test_validate_settings_rejects_invalid_fields(field, value, message):
    settings = CompositionSettings(**{field: value})
    with pytest.raises(ValueError, match=message):
        validate_settings(settings)
