"""Audio source domain.

This module handles all audio-source functionality including:
- The canonical registry of audio-capable sources
- Fader control through per-source adapters
- Volume meter subscriptions with silence heartbeats
- Lifecycle synchronization with the sources service
"""

from .errors import (
    AdapterUnavailableError,
    AudioError,
    AudioSourceNotFoundError,
    SubscriptionAlreadyClosedError,
)
from .models import AudioMutation, AudioSourceState, FaderState, VolmeterSample

__all__ = [
    "AdapterUnavailableError",
    "AudioError",
    "AudioMutation",
    "AudioSourceNotFoundError",
    "AudioSourceState",
    "FaderState",
    "SubscriptionAlreadyClosedError",
    "VolmeterSample",
]
