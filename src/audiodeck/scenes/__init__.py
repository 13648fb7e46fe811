"""Scene graph."""

from .models import Scene, SceneItem
from .service import ScenesService

__all__ = ["Scene", "SceneItem", "ScenesService"]
