"""Models for media sources announced by the sources service."""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class AudioInput:
    """Engine-level capture input a source reads from.

    ``device_index`` of None selects the system default input device.
    """

    device_index: int | None = None
    channels: int = 1
    sample_rate: int = 48000


@dataclass(frozen=True)
class Source:
    """A named media input; ``audio`` is True when it produces audio."""

    source_id: str
    name: str
    audio: bool = True
    is_global: bool = False
    muted: bool = False
    input: AudioInput = field(default_factory=AudioInput)

    def get_input(self) -> AudioInput:
        """Return the capture input the mixer engine attaches to."""
        return self.input

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)
