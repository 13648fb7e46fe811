"""sounddevice-backed mixer engine."""

import logging
from collections.abc import Callable
from functools import partial

from audiodeck.audio.fader import IecFader
from audiodeck.audio.volmeter import SoundDeviceVolmeter
from audiodeck.config.models import MeterConfig

logger = logging.getLogger(__name__)


class SoundDeviceMixer:
    """Creates IEC faders and sounddevice volmeters for audio sources."""

    def __init__(
        self,
        meter_config: MeterConfig,
        mute_lookup: Callable[[str], bool] | None = None,
    ) -> None:
        """Initialize the mixer.

        Args:
            meter_config: Block size and ballistics for created volmeters
            mute_lookup: Returns the current mute flag of a source id
        """
        self.meter_config = meter_config
        self.mute_lookup = mute_lookup

    def create_fader(self, source_id: str) -> IecFader:
        """Create an unattached fader at unity gain."""
        logger.debug("Creating fader for source %s", source_id)
        return IecFader()

    def create_volmeter(self, source_id: str) -> SoundDeviceVolmeter:
        """Create an unattached volmeter reporting the source's mute flag."""
        logger.debug("Creating volmeter for source %s", source_id)
        is_muted = partial(self.mute_lookup, source_id) if self.mute_lookup else None
        return SoundDeviceVolmeter(
            blocksize=self.meter_config.blocksize,
            decay_rate=self.meter_config.decay_rate,
            is_muted=is_muted,
        )
