"""Media sources known to the application."""

from .models import AudioInput, Source
from .service import SourcesService

__all__ = ["AudioInput", "Source", "SourcesService"]
