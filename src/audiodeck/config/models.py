"""Configuration models for audiodeck.

This module contains all configuration-related Pydantic models used throughout the application.
"""

from pydantic import BaseModel, Field, field_validator

from audiodeck.audio.adapters import VOLMETER_UPDATE_INTERVAL


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool | None = None  # None = auto-detect based on environment
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "audiodeck"})

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{v}'.")
        return level


class MeterConfig(BaseModel):
    """Volume meter capture settings."""

    sample_rate: int = Field(default=48000, gt=0)
    channels: int = Field(default=1, gt=0)
    blocksize: int = Field(default=1920, gt=0)  # 40ms at 48kHz
    decay_rate: float = Field(default=0.5, ge=0.0)  # Magnitude fall-off, deflection per second


class AudioDeckConfig(BaseModel):
    """Configuration settings for the audiodeck application."""

    config_version: str = "1.0.0"

    # Milliseconds between native meter updates; the silence heartbeat runs at twice this
    volmeter_update_interval_ms: int = Field(default=VOLMETER_UPDATE_INTERVAL, gt=0)

    meter: MeterConfig = Field(default_factory=MeterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def heartbeat_period_ms(self) -> int:
        """Silence heartbeat period in milliseconds."""
        return self.volmeter_update_interval_ms * 2
