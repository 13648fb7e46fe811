"""Data models for the audio domain."""

import math
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from audiodeck.audio.adapters import FaderAdapter


class AudioMutation(str, Enum):
    """Kinds of change published by the audio source registry."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


def truncate_db(db: float) -> int:
    """Truncate a decibel reading toward zero.

    A closed fader reads -inf; non-finite readings coerce to 0 the same way an
    integer cast of the engine value does.
    """
    if not math.isfinite(db):
        return 0
    return int(db)


@dataclass(frozen=True)
class FaderState:
    """Point-in-time reading of a fader adapter."""

    db: int
    deflection: float
    mul: float

    @classmethod
    def from_adapter(cls, fader: "FaderAdapter") -> "FaderState":
        """Read all three fields from a fader adapter."""
        return cls(db=truncate_db(fader.db), deflection=fader.deflection, mul=fader.mul)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class AudioSourceState:
    """Registry entry for one audio-capable source."""

    source_id: str
    fader: FaderState

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class VolmeterSample:
    """One volume meter reading. Never stored in the registry."""

    level: float
    magnitude: float
    peak: float
    muted: bool

    @classmethod
    def silence(cls) -> "VolmeterSample":
        """Return the all-zero, unmuted sample."""
        return cls(level=0.0, magnitude=0.0, peak=0.0, muted=False)

    def silenced(self) -> "VolmeterSample":
        """Return a copy with level and peak forced to zero."""
        return replace(self, level=0.0, peak=0.0)
