"""Note event container shared by the melody, bass and expression stages.

A :class:`NoteEvent` describes one sounding note:

``pitch``
    Scientific pitch name such as ``"C4"``.

``start_time``
    Offset from the beginning of the composition in beats (quarter notes).

``duration``
    Length in beats.

``velocity``
    Loudness in the range ``0.0`` to ``1.0``.

``section``
    Optional tag (``"verse"``, ``"chorus"`` ...) recording which part of a
    structured composition produced the note.

Events are immutable. Transforms such as articulation or humanization return
new events built with :func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class NoteEvent:
    """Single timed note."""

    pitch: str
    start_time: float
    duration: float
    velocity: float
    section: Optional[str] = None

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> dict:
        """Return a JSON friendly mapping, omitting an empty section tag."""

        data = asdict(self)
        if data["section"] is None:
            del data["section"]
        return data
