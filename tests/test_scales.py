"""Tests for key parsing and scale construction."""

import logging

import pytest

from composition_generator.scales import (
    available_keys,
    available_modes,
    parse_key,
    resolve_scale,
    scale_for_key,
)


def test_major_scale_is_closed_by_upper_tonic():
    scale = resolve_scale("C", "major")
    assert scale.pitches == ("C4", "D4", "E4", "F4", "G4", "A4", "B4", "C5")
    assert len(scale) == 8
    assert scale[0] == "C4"
    assert scale.degrees == ("C", "D", "E", "F", "G", "A", "B")


def test_modes_follow_their_intervals():
    assert scale_for_key("A minor").pitches[:3] == ("A4", "B4", "C5")
    assert scale_for_key("D dorian").pitch_classes == ("D", "E", "F", "G", "A", "B", "C", "D")
    assert len(resolve_scale("C", "major pentatonic")) == 6
    assert len(resolve_scale("C", "chromatic")) == 13


def test_scale_spans_multiple_octaves():
    scale = resolve_scale("G", "major", base_octave=3, octaves=2)
    assert len(scale) == 15
    assert scale[0] == "G3"
    assert scale[-1] == "G5"


def test_flat_tonics_are_respelled():
    scale = scale_for_key("Bb major")
    assert scale.tonic == "A#"
    assert scale[0] == "A#4"


def test_parse_key_variants():
    assert parse_key("Am") == ("A", "minor")
    assert parse_key("C") == ("C", "major")
    assert parse_key("F# dorian") == ("F#", "dorian")
    assert parse_key("C_dorian") == ("C", "dorian")
    assert parse_key("E harmonic minor") == ("E", "harmonic minor")
    assert parse_key("G ionian") == ("G", "major")


def test_parse_key_rejects_bad_tonic():
    with pytest.raises(ValueError):
        parse_key("H major")


def test_unknown_mode_falls_back_to_major(caplog):
    caplog.set_level(logging.WARNING)
    assert parse_key("C lydianish") == ("C", "major")
    assert "Unknown mode" in caplog.text


def test_resolve_scale_is_memoized():
    """Repeated requests return the same immutable object."""
    assert resolve_scale("D", "dorian") is resolve_scale("D", "dorian")


def test_index_of_returns_first_match():
    scale = resolve_scale("C", "major")
    assert scale.index_of("C") == 0
    assert scale.index_of("G5") == 4
    assert scale.index_of("C#") is None


def test_listing_helpers():
    assert "whole tone" in available_modes()
    keys = available_keys()
    assert "C major" in keys
    assert "A minor" in keys
    assert len(keys) == 24
