"""Composition assembly.

:func:`generate_composition` is the main entry point of the package. It
takes a :class:`CompositionSettings` object and returns a
:class:`Composition` holding chords, melody and bass, all aligned to beat
zero.

Without a section structure the progression is resolved once, the melody
is generated over ``bars`` bars and the bass follows the chords.

With a structure such as ``("intro", "verse", "chorus", "outro")`` each
section gets its own progression and character:

==========  =====================  ==========  =============  ==========  ===========  ==============
Section     Progression            Rhythm      Contour        Bass        Bass dyn.    Melody shaping
==========  =====================  ==========  =============  ==========  ===========  ==============
intro       first 2 verse chords   dotted      ascending      basic       fade         legato / fade
verse       verse progression      user        arch           walking     accent       user / user
chorus      chorus progression     basic       wave           groove      crescendo    marcato / cresc.
outro       last 2 chorus chords   dotted      descending     fifths      diminuendo   tenuto / dimin.
other       main progression       user        user           user        none         user / user
==========  =====================  ==========  =============  ==========  ===========  ==============

Melody shaping overrides only apply when the user's own articulation (or
dynamics) is not ``"none"``. Notes are grouped per section tag, shaped, and
concatenated in the order intro, verse, chorus, outro, then any other tags,
before a stable sort by start time.

Example
-------
>>> import random
>>> settings = CompositionSettings(key="G major", structure="verse-chorus")
>>> piece = generate_composition(settings, rng=random.Random(7))
>>> [c.section for c in piece.chords][:5]
['verse', 'verse', 'verse', 'verse', 'chorus']
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import asdict, dataclass, fields, replace
from itertools import groupby
from operator import attrgetter
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import BEATS_PER_BAR
from .bass import DEFAULT_BASS_OCTAVE, BassPattern, generate_bass_line
from .chords import ChordSpec
from .dynamics import (
    BASS_HUMANIZE,
    MELODY_HUMANIZE,
    Articulation,
    Dynamics,
    apply_articulation,
    apply_dynamics,
    apply_expression,
    clamp_velocities,
    humanize_notes,
)
from .events import NoteEvent
from .melody import generate_chord_melody, generate_motif_melody, generate_pattern_melody
from .motif import generate_motif
from .progression import DEFAULT_PROGRESSION, ProgressionTemplate, as_template, resolve_progression
from .rhythm_engine import ContourType, RhythmPattern
from .scales import Scale, scale_for_key
from .utils import parse_structure, validate_settings
from .voice_leading import apply_inversion, apply_voice_leading

__all__ = [
    "SECTION_ORDER",
    "SectionProfile",
    "SECTION_PROFILES",
    "CompositionSettings",
    "Composition",
    "generate_composition",
    "randomize_settings",
]

logger = logging.getLogger(__name__)

SECTION_ORDER: Tuple[str, ...] = ("intro", "verse", "chorus", "outro")

# Thresholds used by ``randomize_settings``.
AUTO_MOTIF_THRESHOLD = 0.5
AUTO_HUMANIZE_THRESHOLD = 0.3
RANDOM_VARIATIONS = ("transpose", "invert", "retrograde", "rhythmic")
RANDOM_ARTICULATIONS = ("legato", "staccato", "accent", "none")
RANDOM_DYNAMICS = ("crescendo", "diminuendo", "random", "none")


@dataclass(frozen=True)
class SectionProfile:
    """Per-section overrides. ``None`` keeps the user's own choice."""

    rhythm: Optional[RhythmPattern] = None
    contour: Optional[ContourType] = None
    articulation: Optional[Articulation] = None
    dynamics: Optional[Dynamics] = None
    bass_pattern: Optional[BassPattern] = None
    bass_dynamics: Dynamics = Dynamics.NONE


SECTION_PROFILES: Dict[str, SectionProfile] = {
    "verse": SectionProfile(
        contour=ContourType.ARCH,
        bass_pattern=BassPattern.WALKING,
        bass_dynamics=Dynamics.ACCENT,
    ),
    "chorus": SectionProfile(
        rhythm=RhythmPattern.BASIC,
        contour=ContourType.WAVE,
        articulation=Articulation.MARCATO,
        dynamics=Dynamics.CRESCENDO,
        bass_pattern=BassPattern.GROOVE,
        bass_dynamics=Dynamics.CRESCENDO,
    ),
    "intro": SectionProfile(
        rhythm=RhythmPattern.DOTTED,
        contour=ContourType.ASCENDING,
        articulation=Articulation.LEGATO,
        dynamics=Dynamics.FADE,
        bass_pattern=BassPattern.BASIC,
        bass_dynamics=Dynamics.FADE,
    ),
    "outro": SectionProfile(
        rhythm=RhythmPattern.DOTTED,
        contour=ContourType.DESCENDING,
        articulation=Articulation.TENUTO,
        dynamics=Dynamics.DIMINUENDO,
        bass_pattern=BassPattern.FIFTHS,
        bass_dynamics=Dynamics.DIMINUENDO,
    ),
}

DEFAULT_SECTION_PROFILE = SectionProfile()


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass
class CompositionSettings:
    """User facing options controlling :func:`generate_composition`.

    ``progression``, ``verse_progression`` and ``chorus_progression`` accept
    a progression name or a list of degree labels. ``rhythm_pattern``
    accepts a pattern name or a list of durations. ``structure`` accepts a
    tuple of section tags or a string such as ``"verse-chorus"``.
    """

    key: str = "C major"
    tempo: int = 120
    bars: int = 4
    progression: Union[str, Sequence[str]] = DEFAULT_PROGRESSION
    rhythm_pattern: Union[str, Sequence[float]] = RhythmPattern.BASIC.value
    contour: str = ContourType.RANDOM.value
    complexity: int = 5
    use_motif: bool = False
    motif_variation: str = "transpose"
    articulation: str = Articulation.LEGATO.value
    dynamics: str = Dynamics.NONE.value
    humanize: bool = True
    chord_duration: float = 1.0
    voice_leading: bool = False
    use_inversions: bool = False
    inversion: int = 0
    extended_chords: bool = False
    structure: Optional[Tuple[str, ...]] = None
    verse_progression: Union[str, Sequence[str]] = "Pop I-V-vi-IV"
    chorus_progression: Union[str, Sequence[str]] = DEFAULT_PROGRESSION
    bass_pattern: str = BassPattern.BASIC.value
    bass_octave: int = DEFAULT_BASS_OCTAVE
    melody_octave: int = 4

    def __post_init__(self) -> None:
        self.structure = parse_structure(self.structure)

    @classmethod
    def from_dict(cls, data: dict) -> "CompositionSettings":
        """Build settings from a JSON style mapping.

        Unknown keys are ignored. Numeric and boolean fields are coerced
        from strings so form and query values can be passed directly.

        Raises
        ------
        ValueError
            If a numeric field cannot be converted.
        """

        values = {}
        for field in fields(cls):
            if field.name not in data:
                continue
            value = data[field.name]
            default = field.default
            if value is None and default is not None:
                continue
            if isinstance(default, bool):
                value = _as_bool(value)
            elif isinstance(default, int) and not isinstance(value, bool):
                try:
                    value = int(value)
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"{field.name} must be an integer") from exc
            elif isinstance(default, float):
                try:
                    value = float(value)
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"{field.name} must be a number") from exc
            values[field.name] = value
        ignored = set(data) - {f.name for f in fields(cls)}
        if ignored:
            logger.debug("Ignoring unknown settings: %s", ", ".join(sorted(ignored)))
        return cls(**values)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["structure"] = list(self.structure) if self.structure else None
        for name in ("progression", "verse_progression", "chorus_progression", "rhythm_pattern"):
            if not isinstance(data[name], str):
                data[name] = list(data[name])
        return data


@dataclass(frozen=True)
class Composition:
    """Generated piece. Chord positions are in bars, note times in beats."""

    key: str
    tempo: int
    bars: int
    chords: Tuple[ChordSpec, ...]
    melody: Tuple[NoteEvent, ...]
    bass: Tuple[NoteEvent, ...]
    structure: Optional[Tuple[str, ...]] = None

    @property
    def length_beats(self) -> float:
        ends = [n.end_time for n in self.melody + self.bass]
        ends.extend((c.position + c.duration) * BEATS_PER_BAR for c in self.chords)
        return max(ends, default=0.0)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "tempo": self.tempo,
            "bars": self.bars,
            "structure": list(self.structure) if self.structure else None,
            "chords": [c.to_dict() for c in self.chords],
            "melody": [n.to_dict() for n in self.melody],
            "bass": [n.to_dict() for n in self.bass],
        }


def _selected(choice) -> bool:
    """Return ``True`` unless ``choice`` is the literal ``"none"``."""

    return choice is not None and str(getattr(choice, "value", choice)).strip().lower() != "none"


def _voice(chords: List[ChordSpec], settings: CompositionSettings) -> List[ChordSpec]:
    if settings.voice_leading:
        return apply_voice_leading(chords)
    if settings.use_inversions and settings.inversion > 0:
        return apply_inversion(chords, settings.inversion)
    return chords


def _section_template(tag: str, settings: CompositionSettings) -> ProgressionTemplate:
    if tag == "verse":
        return as_template(settings.verse_progression)
    if tag == "chorus":
        return as_template(settings.chorus_progression)
    if tag == "intro":
        return as_template(settings.verse_progression).subset(None, 2)
    if tag == "outro":
        return as_template(settings.chorus_progression).subset(-2)
    return as_template(settings.progression)


def _profile(tag: Optional[str]) -> SectionProfile:
    return SECTION_PROFILES.get(tag or "", DEFAULT_SECTION_PROFILE)


def _bucket_order(buckets: Dict[str, List[NoteEvent]]) -> List[str]:
    known = [tag for tag in SECTION_ORDER if tag in buckets]
    return known + [tag for tag in buckets if tag not in SECTION_ORDER]


def _bucket(notes: Sequence[NoteEvent]) -> Dict[str, List[NoteEvent]]:
    buckets: Dict[str, List[NoteEvent]] = {}
    for note in notes:
        buckets.setdefault(note.section or "", []).append(note)
    return buckets


def _finish(notes: List[NoteEvent], settings: CompositionSettings, options, rng: random.Random) -> Tuple[NoteEvent, ...]:
    if settings.humanize:
        return tuple(humanize_notes(notes, options, rng))
    return tuple(clamp_velocities(notes))


def _compose_simple(settings: CompositionSettings, scale: Scale, rng: random.Random) -> Composition:
    chords = resolve_progression(
        settings.key,
        as_template(settings.progression),
        settings.extended_chords,
        settings.chord_duration,
    )
    chords = _voice(chords, settings)

    if settings.use_motif:
        melody = generate_motif_melody(scale, settings.bars, settings.motif_variation, rng)
    else:
        melody = generate_pattern_melody(
            scale,
            settings.bars,
            settings.rhythm_pattern,
            settings.contour,
            settings.complexity,
            rng,
        )
    melody = apply_expression(
        melody,
        settings.articulation,
        settings.dynamics,
        settings.humanize,
        MELODY_HUMANIZE,
        rng,
    )

    bass = generate_bass_line(chords, settings.bass_pattern, settings.bass_octave)
    bass = apply_expression(bass, humanize=settings.humanize, options=BASS_HUMANIZE, rng=rng)

    return Composition(
        key=settings.key,
        tempo=settings.tempo,
        bars=settings.bars,
        chords=tuple(chords),
        melody=tuple(melody),
        bass=tuple(bass),
    )


def _compose_structured(settings: CompositionSettings, scale: Scale, rng: random.Random) -> Composition:
    chords: List[ChordSpec] = []
    position = 0.0
    for tag in settings.structure:
        section_chords = resolve_progression(
            settings.key,
            _section_template(tag, settings),
            settings.extended_chords,
            settings.chord_duration,
            start_position=position,
            section=tag,
        )
        chords.extend(section_chords)
        position += len(section_chords) * settings.chord_duration
    # Voice leading runs across section boundaries.
    chords = _voice(chords, settings)

    melody_notes: List[NoteEvent] = []
    chord_index = 0
    for tag, run in groupby(chords, key=attrgetter("section")):
        run = list(run)
        profile = _profile(tag)
        motif = generate_motif(len(scale), rng=rng) if settings.use_motif else None
        melody_notes.extend(
            generate_chord_melody(
                scale,
                run,
                profile.rhythm or settings.rhythm_pattern,
                profile.contour or settings.contour,
                settings.complexity,
                rng,
                section=tag,
                motif=motif,
                variation=settings.motif_variation,
                first_chord_index=chord_index,
            )
        )
        chord_index += len(run)

    buckets = _bucket(melody_notes)
    melody: List[NoteEvent] = []
    for tag in _bucket_order(buckets):
        notes = buckets[tag]
        profile = _profile(tag)
        if _selected(settings.articulation):
            notes = apply_articulation(notes, profile.articulation or settings.articulation)
        if _selected(settings.dynamics):
            notes = apply_dynamics(notes, profile.dynamics or settings.dynamics)
        melody.extend(notes)
    melody.sort(key=attrgetter("start_time"))

    bass_notes = generate_bass_line(
        chords,
        settings.bass_pattern,
        settings.bass_octave,
        pattern_for=lambda chord: _profile(chord.section).bass_pattern or settings.bass_pattern,
    )
    buckets = _bucket(bass_notes)
    bass: List[NoteEvent] = []
    for tag in _bucket_order(buckets):
        bass.extend(apply_dynamics(buckets[tag], _profile(tag).bass_dynamics))
    bass.sort(key=attrgetter("start_time"))

    return Composition(
        key=settings.key,
        tempo=settings.tempo,
        bars=math.ceil(position),
        chords=tuple(chords),
        melody=_finish(melody, settings, MELODY_HUMANIZE, rng),
        bass=_finish(bass, settings, BASS_HUMANIZE, rng),
        structure=settings.structure,
    )


def generate_composition(
    settings: Optional[CompositionSettings] = None,
    rng: Optional[random.Random] = None,
    **overrides,
) -> Composition:
    """Generate a complete composition.

    Parameters
    ----------
    settings:
        Options for the piece. Defaults to :class:`CompositionSettings`.
    rng:
        Random source. Pass a seeded ``random.Random`` for reproducible
        output; a fresh unseeded generator is used when omitted.
    **overrides:
        Field values replacing those in ``settings``.

    Returns
    -------
    Composition
        Chords, melody and bass aligned to beat zero.

    Raises
    ------
    ValueError
        If the settings are invalid (see
        :func:`~composition_generator.utils.validate_settings`).
    """

    settings = settings or CompositionSettings()
    if overrides:
        settings = replace(settings, **overrides)
    validate_settings(settings)
    rng = rng or random.Random()
    scale = scale_for_key(settings.key, settings.melody_octave)

    if settings.structure:
        piece = _compose_structured(settings, scale, rng)
    else:
        piece = _compose_simple(settings, scale, rng)
    logger.debug(
        "Generated %d chords, %d melody notes and %d bass notes in %s",
        len(piece.chords),
        len(piece.melody),
        len(piece.bass),
        settings.key,
    )
    return piece


def randomize_settings(
    settings: Optional[CompositionSettings] = None,
    rng: Optional[random.Random] = None,
) -> CompositionSettings:
    """Return ``settings`` with the expressive options chosen at random.

    The rhythm pattern, contour, motif toggle, articulation, dynamics and
    humanize flag are redrawn. The motif variation is only redrawn when the
    motif is switched on. Every other field is kept.
    """

    settings = settings or CompositionSettings()
    rng = rng or random.Random()
    rhythm_pattern = rng.choice(list(RhythmPattern)).value
    contour = rng.choice(list(ContourType)).value
    use_motif = rng.random() > AUTO_MOTIF_THRESHOLD
    motif_variation = rng.choice(RANDOM_VARIATIONS) if use_motif else settings.motif_variation
    return replace(
        settings,
        rhythm_pattern=rhythm_pattern,
        contour=contour,
        use_motif=use_motif,
        motif_variation=motif_variation,
        articulation=rng.choice(RANDOM_ARTICULATIONS),
        dynamics=rng.choice(RANDOM_DYNAMICS),
        humanize=rng.random() > AUTO_HUMANIZE_THRESHOLD,
    )
