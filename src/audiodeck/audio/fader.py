"""IEC 60268-18 fader.

Deflection is the normalized position of the fader knob (0.0 to 1.0). The IEC
curve maps it piecewise-linearly onto decibels so the usable range of the
control sits between -60 dB and 0 dB.
"""

import logging
import math

from audiodeck.sources.models import AudioInput

logger = logging.getLogger(__name__)

MIN_DB = -math.inf
MAX_DB = 0.0


def iec_def_to_db(deflection: float) -> float:
    """Convert a fader deflection to decibels."""
    if deflection >= 1.0:
        return 0.0
    if deflection <= 0.0:
        return -math.inf

    if deflection >= 0.75:
        return (deflection - 1.0) / 0.25 * 9.0
    if deflection >= 0.5:
        return (deflection - 0.75) / 0.25 * 11.0 - 9.0
    if deflection >= 0.3:
        return (deflection - 0.5) / 0.2 * 10.0 - 20.0
    if deflection >= 0.15:
        return (deflection - 0.3) / 0.15 * 10.0 - 30.0
    if deflection >= 0.075:
        return (deflection - 0.15) / 0.075 * 10.0 - 40.0
    if deflection >= 0.025:
        return (deflection - 0.075) / 0.05 * 10.0 - 50.0
    if deflection >= 0.001:
        return (deflection - 0.025) / 0.025 * 90.0 - 60.0
    return -math.inf


def iec_db_to_def(db: float) -> float:
    """Convert decibels to a fader deflection."""
    if db >= 0.0:
        return 1.0
    if db == -math.inf:
        return 0.0

    if db >= -9.0:
        return (db + 9.0) / 9.0 * 0.25 + 0.75
    if db >= -20.0:
        return (db + 20.0) / 11.0 * 0.25 + 0.5
    if db >= -30.0:
        return (db + 30.0) / 10.0 * 0.2 + 0.3
    if db >= -40.0:
        return (db + 40.0) / 10.0 * 0.15 + 0.15
    if db >= -50.0:
        return (db + 50.0) / 10.0 * 0.075 + 0.075
    if db >= -60.0:
        return (db + 60.0) / 10.0 * 0.05 + 0.025
    if db >= -114.0:
        return (db + 150.0) / 90.0 * 0.025
    return 0.0


def db_to_mul(db: float) -> float:
    """Convert decibels to a linear gain multiplier."""
    if db == -math.inf:
        return 0.0
    return 10.0 ** (db / 20.0)


def mul_to_db(mul: float) -> float:
    """Convert a linear gain multiplier to decibels."""
    if mul <= 0.0:
        return -math.inf
    return 20.0 * math.log10(mul)


class IecFader:
    """Fader adapter keeping the knob position and its gain in step.

    The field that was written is stored as given (after clamping) and the
    others are derived from it, so a written deflection or dB value reads back
    unchanged even where the curve is not invertible (below 0.01 deflection
    the dB side bottoms out).
    """

    def __init__(self, db: float = MAX_DB) -> None:
        self.audio_input: AudioInput | None = None
        self.db = db

    @staticmethod
    def _clamp_db(db: float) -> float:
        if math.isnan(db):
            return MIN_DB
        return min(max(db, MIN_DB), MAX_DB)

    @staticmethod
    def _clamp_deflection(deflection: float) -> float:
        if math.isnan(deflection):
            return 0.0
        return min(max(deflection, 0.0), 1.0)

    @property
    def db(self) -> float:
        return self._db

    @db.setter
    def db(self, value: float) -> None:
        self._db = self._clamp_db(value)
        self._deflection = iec_db_to_def(self._db)

    @property
    def deflection(self) -> float:
        return self._deflection

    @deflection.setter
    def deflection(self, value: float) -> None:
        self._deflection = self._clamp_deflection(value)
        self._db = self._clamp_db(iec_def_to_db(self._deflection))

    @property
    def mul(self) -> float:
        return db_to_mul(self._db)

    @mul.setter
    def mul(self, value: float) -> None:
        self.db = mul_to_db(value)

    def attach(self, audio_input: AudioInput) -> None:
        """Bind the fader to an engine input."""
        self.audio_input = audio_input
        logger.debug("Fader attached to input %s", audio_input)

    def detach(self) -> None:
        """Release the engine input."""
        self.audio_input = None
