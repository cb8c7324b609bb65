"""Tests for the chord voice-leading optimizer."""

import importlib
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

vl = importlib.import_module("composition_generator.voice_leading")
from composition_generator.chords import build_chord  # noqa: E402
from composition_generator.progression import resolve_progression  # noqa: E402


def test_first_chord_keeps_root_position():
    chords = vl.apply_voice_leading([build_chord("F"), build_chord("C")])
    assert chords[0].notes == ("F4", "A4", "C5")


def test_second_chord_minimizes_movement():
    """``G`` to ``C`` lands on the second inversion of ``C``."""
    chords = vl.apply_voice_leading([build_chord("G"), build_chord("C")])
    assert chords[1].notes == ("G4", "C5", "E5")
    candidates = vl.candidate_voicings(build_chord("C").pitches)
    best = min(vl.voice_movement(chords[0].notes, c) for c in candidates)
    assert vl.voice_movement(chords[0].notes, chords[1].notes) == best


def test_exact_tie_prefers_root_position():
    """Root position and first inversion both move six semitones."""
    previous = ("D4", "F4", "A#4")
    pitches = build_chord("C").pitches
    scores = vl.movement_scores(previous, vl.candidate_voicings(pitches))
    assert list(scores) == [6, 6, 18, 22]
    assert vl.choose_voicing(previous, pitches) == ("C4", "E4", "G4")


def test_candidate_order():
    candidates = vl.candidate_voicings(("C4", "E4", "G4"))
    assert candidates == [
        ("C4", "E4", "G4"),
        ("E4", "G4", "C5"),
        ("G4", "C5", "E5"),
        ("C4", "E5", "G5"),
    ]


def test_voice_leading_preserves_chord_pitches():
    original = resolve_progression("C major", "Canon (Pachelbel)")
    voiced = vl.apply_voice_leading(original)
    assert len(voiced) == len(original)
    for before, after in zip(original, voiced):
        assert after.pitches == before.pitches
        assert set(after.pitch_classes) == set(before.pitch_classes)
        assert len(after.notes) == len(before.pitches)


def test_movement_compares_shared_length_only():
    assert vl.voice_movement(("C4", "E4", "G4"), ("C4", "E4", "G4", "B4")) == 0


def test_static_inversion_is_capped():
    chords = [build_chord("C"), build_chord("G", "7")]
    first = vl.apply_inversion(chords, 1)
    assert first[0].notes == ("E4", "G4", "C5")
    capped = vl.apply_inversion(chords, 5)
    assert capped[0].notes == ("G4", "C5", "E5")
    assert capped[1].notes == ("F5", "G5", "B5", "D6")
