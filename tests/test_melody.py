"""Tests for the melody generators.

The generators draw every random value from an injected ``random.Random`` so
each test seeds its own instance for repeatable results.
"""

import random

import pytest

from composition_generator.chords import build_chord
from composition_generator.melody import (
    CHORUS_VELOCITY_FLOOR,
    generate_arpeggio,
    generate_chord_melody,
    generate_motif_melody,
    generate_pattern_melody,
    snap_to_chord_tone,
)
from composition_generator.motif import MotifNote
from composition_generator.progression import resolve_progression
from composition_generator.scales import resolve_scale

SCALE = resolve_scale("C", "major")


def test_pattern_melody_fills_bars_exactly():
    notes = generate_pattern_melody(SCALE, 4, [1, 1, 1, 1], "ascending", rng=random.Random(1))
    assert len(notes) == 16
    assert [n.start_time for n in notes] == [float(i) for i in range(16)]


def test_pattern_melody_trims_overflowing_notes():
    notes = generate_pattern_melody(SCALE, 4, "syncopated", "random", rng=random.Random(2))
    assert notes
    assert all(n.start_time < 16 for n in notes)
    assert all(n.pitch in SCALE.pitches for n in notes)


def test_pattern_melody_velocities_and_reproducibility():
    first = generate_pattern_melody(SCALE, 2, "basic", "wave", complexity=10, rng=random.Random(3))
    second = generate_pattern_melody(SCALE, 2, "basic", "wave", complexity=10, rng=random.Random(3))
    assert first == second
    assert all(0.7 <= n.velocity < 1.0 for n in first)


def test_ascending_contour_rises():
    notes = generate_pattern_melody(SCALE, 4, "basic", "ascending", complexity=1, rng=random.Random(4))
    indices = [SCALE.pitches.index(n.pitch) for n in notes]
    assert indices[0] <= 1
    assert indices[-1] >= len(SCALE) - 2


def test_motif_melody_repeats_seed_once_per_bar():
    seed = (MotifNote(0, 1.0), MotifNote(2, 1.0), MotifNote(4, 1.0), MotifNote(7, 1.0))
    notes = generate_motif_melody(SCALE, 2, "retrograde", rng=random.Random(5), motif=seed)
    assert [n.pitch for n in notes] == ["C4", "E4", "G4", "C5", "C5", "G4", "E4", "C4"]
    assert [n.start_time for n in notes] == [float(i) for i in range(8)]


def test_motif_melody_is_trimmed():
    notes = generate_motif_melody(SCALE, 4, "augment", rng=random.Random(6))
    assert all(n.start_time < 16 for n in notes)


def test_snap_to_chord_tone():
    chord = build_chord("C")
    rng = random.Random(7)
    for index in range(len(SCALE)):
        snapped = snap_to_chord_tone(SCALE, index, chord, rng, probability=1.0)
        assert SCALE.pitch_classes[snapped] in ("C", "E", "G")
    assert snap_to_chord_tone(SCALE, 1, chord, rng, probability=0.0) == 1
    assert snap_to_chord_tone(SCALE, 1, None, rng, probability=1.0) == 1


def test_chord_melody_stays_inside_each_chord():
    chords = resolve_progression("C major", "Basic I-IV-V-I", section="verse")
    notes = generate_chord_melody(SCALE, chords, "dotted", "arch", rng=random.Random(8), section="verse")
    assert notes
    assert all(n.section == "verse" for n in notes)
    for chord in chords:
        start, end = chord.position * 4, (chord.position + chord.duration) * 4
        inside = [n for n in notes if start <= n.start_time < end]
        assert inside
        assert inside[0].start_time == start


def test_chorus_uses_louder_velocity_floor():
    chords = resolve_progression("C major", "Basic I-IV-V-I", section="chorus")
    notes = generate_chord_melody(SCALE, chords, "basic", "wave", rng=random.Random(9), section="chorus")
    assert len(notes) == 16
    assert all(n.velocity >= CHORUS_VELOCITY_FLOOR for n in notes)


def test_chord_melody_motif_is_stretched_to_chord():
    chords = resolve_progression("C major", ["I", "V"], chord_duration=2.0)
    seed = (MotifNote(0, 0.5), MotifNote(1, 1.5))
    notes = generate_chord_melody(SCALE, chords, rng=random.Random(10), motif=seed)
    assert len(notes) == 4
    assert [n.duration for n in notes] == [2.0, 6.0, 2.0, 6.0]
    assert [n.start_time for n in notes] == [0.0, 2.0, 8.0, 10.0]


def test_arpeggio_patterns():
    chords = [build_chord("C")]
    up = generate_arpeggio(chords, "up")
    assert [n.pitch for n in up] == ["C4", "E4", "G4", "C4"]
    assert [n.start_time for n in up] == [0.0, 1.0, 2.0, 3.0]
    down = generate_arpeggio(chords, "down")
    assert [n.pitch for n in down] == ["G4", "E4", "C4", "G4"]
    inside = generate_arpeggio(chords, "insideout", notes_per_chord=3)
    assert [n.pitch for n in inside] == ["E4", "C4", "G4"]


def test_arpeggio_rejects_non_positive_count():
    with pytest.raises(ValueError):
        generate_arpeggio([build_chord("C")], notes_per_chord=0)
