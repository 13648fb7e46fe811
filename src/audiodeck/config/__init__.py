"""audiodeck configuration package.

This package provides centralized configuration management with:
- Validation through Pydantic models
- YAML parsing and serialization
"""

from .manager import ConfigManager
from .models import AudioDeckConfig

__all__ = [
    "AudioDeckConfig",
    "ConfigManager",
]
