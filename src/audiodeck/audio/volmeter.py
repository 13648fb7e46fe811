import itertools
import logging
import threading
from collections.abc import Callable, Hashable

import numpy as np
import sounddevice as sd

from audiodeck.audio.adapters import VolmeterCallback
from audiodeck.audio.fader import iec_db_to_def, mul_to_db
from audiodeck.audio.models import VolmeterSample
from audiodeck.sources.models import AudioInput

logger = logging.getLogger(__name__)


def measure_block(block: np.ndarray) -> tuple[float, float]:
    """Return (rms, peak) of a float32 audio block across all channels."""
    if block.size == 0:
        return 0.0, 0.0
    samples = block.astype(np.float64, copy=False)
    rms = float(np.sqrt(np.mean(np.square(samples))))
    peak = float(np.max(np.abs(samples)))
    return rms, peak


class SoundDeviceVolmeter:
    """Meter adapter measuring a sounddevice input stream.

    ``level`` and ``peak`` follow the current block; ``magnitude`` follows the
    RMS level with a ballistic fall-off of ``decay_rate`` deflection per second.
    All three are reported on the IEC deflection scale.
    """

    def __init__(
        self,
        blocksize: int,
        decay_rate: float,
        is_muted: Callable[[], bool] | None = None,
    ) -> None:
        self.blocksize = blocksize
        self.decay_rate = decay_rate
        self.is_muted = is_muted or (lambda: False)
        self.stream: sd.InputStream | None = None
        self.audio_input: AudioInput | None = None
        self._magnitude = 0.0
        self._callbacks: dict[int, VolmeterCallback] = {}
        self._callbacks_lock = threading.Lock()
        self._tokens = itertools.count(1)

    def add_callback(self, callback: VolmeterCallback) -> Hashable:
        """Register a sample callback and return a token for removal."""
        token = next(self._tokens)
        with self._callbacks_lock:
            self._callbacks[token] = callback
        return token

    def remove_callback(self, token: Hashable) -> None:
        """Unregister a callback; unknown tokens are ignored."""
        with self._callbacks_lock:
            self._callbacks.pop(token, None)  # type: ignore[call-overload]

    def attach(self, audio_input: AudioInput) -> None:
        """Open and start an input stream on the given device."""
        self.detach()
        self.audio_input = audio_input
        self.stream = sd.InputStream(
            device=audio_input.device_index,
            samplerate=audio_input.sample_rate,
            channels=audio_input.channels,
            blocksize=self.blocksize,
            callback=self._callback,
        )
        self.stream.start()
        logger.info(
            "Volmeter stream started on device %s at %dHz",
            audio_input.device_index,
            audio_input.sample_rate,
        )

    def detach(self) -> None:
        """Stop and close the input stream if one is open."""
        if self.stream is None:
            return
        stream, self.stream = self.stream, None
        try:
            stream.abort()
            stream.close()
        except Exception as e:
            logger.warning("Error closing volmeter stream: %s", e)
        self.audio_input = None

    def process_block(self, block: np.ndarray) -> VolmeterSample:
        """Convert one audio block into a meter sample."""
        rms, peak = measure_block(block)
        level = iec_db_to_def(mul_to_db(rms))
        seconds = len(block) / self.audio_input.sample_rate if self.audio_input else 0.0
        self._magnitude = max(level, self._magnitude - self.decay_rate * seconds, 0.0)
        return VolmeterSample(
            level=level,
            magnitude=self._magnitude,
            peak=iec_db_to_def(mul_to_db(peak)),
            muted=self.is_muted(),
        )

    def _callback(
        self, indata: np.ndarray, frames: int, time: sd.CallbackStop, status: sd.CallbackFlags
    ) -> None:
        """Process a block of audio data from the sounddevice stream."""
        if status:
            logger.debug("Volmeter stream status: %s", status)
        sample = self.process_block(indata)
        with self._callbacks_lock:
            callbacks = list(self._callbacks.values())
        for callback in callbacks:
            try:
                callback(sample)
            except Exception:
                logger.exception("Volmeter callback failed")
