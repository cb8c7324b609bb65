"""End-to-end tests for :func:`generate_composition`."""

import json
import random
from collections import Counter

import pytest

from composition_generator.composition import (
    RANDOM_ARTICULATIONS,
    RANDOM_DYNAMICS,
    RANDOM_VARIATIONS,
    CompositionSettings,
    generate_composition,
    randomize_settings,
)
from composition_generator.rhythm_engine import ContourType, RhythmPattern


def _symbols(piece, section=None):
    return [c.symbol for c in piece.chords if section is None or c.section == section]


def test_simple_composition():
    piece = generate_composition(CompositionSettings(humanize=False), rng=random.Random(1))
    assert _symbols(piece) == ["C", "F", "G", "C"]
    assert piece.bars == 4
    assert piece.structure is None
    assert all(n.start_time < 16 for n in piece.melody)
    assert [n.pitch for n in piece.bass] == ["C2", "F2", "G2", "C2"]
    assert [n.start_time for n in piece.bass] == [0.0, 4.0, 8.0, 12.0]
    assert piece.length_beats == 16


def test_velocities_are_clamped():
    settings = CompositionSettings(articulation="marcato", dynamics="accent", humanize=False)
    piece = generate_composition(settings, rng=random.Random(2))
    assert all(0.0 <= n.velocity <= 1.0 for n in piece.melody + piece.bass)


def test_seed_reproduces_composition():
    settings = CompositionSettings(key="E minor", structure="intro-verse-chorus-outro", use_motif=True)
    first = generate_composition(settings, rng=random.Random(11))
    second = generate_composition(settings, rng=random.Random(11))
    assert first.to_dict() == second.to_dict()


def test_voice_leading_keeps_chord_pitches():
    plain = generate_composition(CompositionSettings(), rng=random.Random(3))
    voiced = generate_composition(CompositionSettings(voice_leading=True), rng=random.Random(3))
    assert [c.pitches for c in voiced.chords] == [c.pitches for c in plain.chords]
    assert voiced.chords[0].notes == voiced.chords[0].pitches
    assert all(c.voicing is not None for c in voiced.chords)


def test_static_inversion_applies_without_voice_leading():
    settings = CompositionSettings(use_inversions=True, inversion=1)
    piece = generate_composition(settings, rng=random.Random(4))
    assert piece.chords[0].notes == ("E4", "G4", "C5")


def test_motif_mode_is_trimmed():
    settings = CompositionSettings(use_motif=True, motif_variation="augment", bars=3)
    piece = generate_composition(settings, rng=random.Random(5))
    assert piece.melody
    assert all(n.start_time < 12.2 for n in piece.melody)


def test_structured_sections_and_templates():
    settings = CompositionSettings(structure="intro-verse-chorus-outro", humanize=False)
    piece = generate_composition(settings, rng=random.Random(6))
    assert piece.structure == ("intro", "verse", "chorus", "outro")
    assert _symbols(piece, "intro") == ["C", "G"]
    assert _symbols(piece, "verse") == ["C", "G", "Am", "F"]
    assert _symbols(piece, "chorus") == ["C", "F", "G", "C"]
    assert _symbols(piece, "outro") == ["G", "C"]
    assert piece.bars == 12
    assert [c.position for c in piece.chords] == [float(i) for i in range(12)]


def test_structured_bass_patterns_follow_sections():
    settings = CompositionSettings(structure="intro-verse-chorus-outro", humanize=False)
    piece = generate_composition(settings, rng=random.Random(7))
    counts = Counter(n.section for n in piece.bass)
    assert counts == {"intro": 2, "verse": 16, "chorus": 24, "outro": 4}


def test_structured_melody_is_time_ordered():
    settings = CompositionSettings(structure="verse-chorus", humanize=False)
    piece = generate_composition(settings, rng=random.Random(8))
    starts = [n.start_time for n in piece.melody]
    assert starts == sorted(starts)
    assert {n.section for n in piece.melody} == {"verse", "chorus"}


def test_section_shaping_requires_user_articulation():
    shaped = generate_composition(
        CompositionSettings(structure="chorus", humanize=False), rng=random.Random(9)
    )
    assert all(n.duration == pytest.approx(0.8) for n in shaped.melody)

    plain = generate_composition(
        CompositionSettings(structure="chorus", articulation="none", humanize=False),
        rng=random.Random(9),
    )
    assert all(n.duration == pytest.approx(1.0) for n in plain.melody)


def test_repeated_section_shares_one_dynamics_curve():
    settings = CompositionSettings(structure="chorus-verse-chorus", humanize=False)
    piece = generate_composition(settings, rng=random.Random(14))
    assert piece.structure == ("chorus", "verse", "chorus")

    chorus = [n for n in piece.bass if n.section == "chorus"]
    assert len(chorus) == 48
    groove = [0.95, 0.7, 0.8, 0.9, 0.75, 0.85]
    expected = [groove[i % 6] * (0.7 + i / 48 * 0.3) for i in range(48)]
    assert [n.velocity for n in chorus] == pytest.approx(expected)
    # The second chorus continues the curve instead of restarting it.
    assert chorus[24].start_time == 32.0
    assert chorus[24].velocity == pytest.approx(0.95 * 0.85)

    starts = [n.start_time for n in piece.melody]
    assert starts == sorted(starts)
    assert [n.section for n in piece.bass][:24] == ["chorus"] * 24


def test_unknown_section_uses_main_progression():
    settings = CompositionSettings(structure="bridge", progression="Jazz ii-V-I", humanize=False)
    piece = generate_composition(settings, rng=random.Random(10))
    assert _symbols(piece) == ["Dm", "G", "C"]
    assert all(n.velocity == pytest.approx(0.9) for n in piece.bass)


def test_invalid_settings_raise():
    with pytest.raises(ValueError):
        generate_composition(CompositionSettings(), bars=0)
    with pytest.raises(ValueError):
        generate_composition(CompositionSettings(key="H major"))


def test_from_dict_coerces_values():
    settings = CompositionSettings.from_dict(
        {"tempo": "100", "humanize": "false", "bars": "8", "structure": "verse-chorus", "unknown": 1}
    )
    assert settings.tempo == 100
    assert settings.humanize is False
    assert settings.bars == 8
    assert settings.structure == ("verse", "chorus")
    with pytest.raises(ValueError):
        CompositionSettings.from_dict({"tempo": "fast"})


def test_settings_round_trip_through_json():
    settings = CompositionSettings(progression=["ii", "V", "I"], structure="verse-chorus")
    restored = CompositionSettings.from_dict(json.loads(json.dumps(settings.to_dict())))
    assert restored.structure == settings.structure
    assert list(restored.progression) == ["ii", "V", "I"]


def test_composition_serializes_to_json():
    piece = generate_composition(
        CompositionSettings(structure="verse-chorus"), rng=random.Random(12)
    )
    data = json.loads(json.dumps(piece.to_dict()))
    assert data["structure"] == ["verse", "chorus"]
    assert data["chords"][0]["section"] == "verse"
    assert {"pitch", "start_time", "duration", "velocity"} <= set(data["melody"][0])


def test_randomize_settings_draws_known_choices():
    base = CompositionSettings(key="F major", bars=6)
    for seed in range(20):
        settings = randomize_settings(base, random.Random(seed))
        assert settings.key == "F major"
        assert settings.bars == 6
        assert settings.motif_variation in RANDOM_VARIATIONS
        assert settings.articulation in RANDOM_ARTICULATIONS
        assert settings.dynamics in RANDOM_DYNAMICS
        assert settings.rhythm_pattern in {p.value for p in RhythmPattern}
        assert settings.contour in {c.value for c in ContourType}
        generate_composition(settings, rng=random.Random(seed))


def test_randomize_keeps_variation_when_motif_is_off():
    base = CompositionSettings(motif_variation="augment")
    outcomes = set()
    for seed in range(50):
        settings = randomize_settings(base, random.Random(seed))
        outcomes.add(settings.use_motif)
        if settings.use_motif:
            assert settings.motif_variation in RANDOM_VARIATIONS
        else:
            assert settings.motif_variation == "augment"
    assert outcomes == {True, False}
