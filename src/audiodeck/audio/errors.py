"""Exceptions raised by the audio domain."""


class AudioError(Exception):
    """Base class for audio domain errors."""


class AudioSourceNotFoundError(AudioError, KeyError):
    """Raised when an operation references a source id that is not tracked."""

    def __init__(self, source_id: str) -> None:
        super().__init__(source_id)
        self.source_id = source_id

    def __str__(self) -> str:
        return f"Audio source '{self.source_id}' is not tracked"


class AdapterUnavailableError(AudioError, RuntimeError):
    """Raised when the mixer engine cannot create or attach a source's adapters."""

    def __init__(self, source_id: str, reason: str) -> None:
        super().__init__(f"Adapters unavailable for source '{source_id}': {reason}")
        self.source_id = source_id
        self.reason = reason


class SubscriptionAlreadyClosedError(AudioError):
    """Raised when a torn-down volmeter subscription is driven again."""
