import logging
from dataclasses import asdict, dataclass

import sounddevice as sd

from audiodeck.sources.models import AudioInput, Source

logger = logging.getLogger(__name__)


@dataclass
class AudioDevice:
    """Represents an audio input device."""

    name: str
    index: int
    host_api_index: int
    max_input_channels: int
    default_samplerate: float

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    def to_source(self, sample_rate: int, channels: int) -> Source:
        """Describe this device as an audio-capable source."""
        return Source(
            source_id=f"device-{self.index}",
            name=self.name,
            audio=True,
            input=AudioInput(
                device_index=self.index,
                channels=min(channels, self.max_input_channels),
                sample_rate=sample_rate,
            ),
        )


class AudioDeviceService:
    """Service for discovering audio input devices."""

    def discover_input_devices(self) -> list[AudioDevice]:
        """Discovers available audio input devices and returns them as AudioDevice instances."""
        logger.debug("Discovering audio input devices...")
        devices = sd.query_devices()
        input_devices: list[AudioDevice] = []

        for device in devices:
            if device["max_input_channels"] > 0:  # type: ignore[index]
                input_devices.append(
                    AudioDevice(
                        name=device["name"],  # type: ignore[index]
                        index=device["index"],  # type: ignore[index]
                        host_api_index=device["hostapi"],  # type: ignore[index]
                        max_input_channels=device["max_input_channels"],  # type: ignore[index]
                        default_samplerate=device["default_samplerate"],  # type: ignore[index]
                    )
                )
        logger.debug("Found %d input device(s).", len(input_devices))
        return input_devices
