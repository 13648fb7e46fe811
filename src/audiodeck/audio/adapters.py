"""Protocols for the mixer engine and the per-source adapters it creates."""

from collections.abc import Callable, Hashable
from typing import Protocol

from audiodeck.audio.models import VolmeterSample
from audiodeck.sources.models import AudioInput

VolmeterCallback = Callable[[VolmeterSample], None]

# Milliseconds between native meter updates.
VOLMETER_UPDATE_INTERVAL = 40


class FaderAdapter(Protocol):
    """Native gain control for one input.

    Setting any of ``db``, ``deflection`` or ``mul`` updates the other two.
    """

    db: float
    deflection: float
    mul: float

    def attach(self, audio_input: AudioInput) -> None:
        """Bind the fader to an engine input."""
        ...

    def detach(self) -> None:
        """Release the engine input."""
        ...


class MeterAdapter(Protocol):
    """Native level meter for one input.

    Callbacks may be invoked from an engine thread.
    """

    def attach(self, audio_input: AudioInput) -> None:
        """Bind the meter to an engine input and start measuring."""
        ...

    def detach(self) -> None:
        """Stop measuring and release the engine input."""
        ...

    def add_callback(self, callback: VolmeterCallback) -> Hashable:
        """Register a sample callback and return a token for removal."""
        ...

    def remove_callback(self, token: Hashable) -> None:
        """Unregister the callback registered under ``token``."""
        ...


class MixerEngine(Protocol):
    """Factory for fader and meter adapters."""

    def create_fader(self, source_id: str) -> FaderAdapter:
        """Create an unattached fader for a source."""
        ...

    def create_volmeter(self, source_id: str) -> MeterAdapter:
        """Create an unattached meter for a source."""
        ...
