import logging
import threading

from audiodeck.scenes.models import Scene, SceneItem

logger = logging.getLogger(__name__)


class ScenesService:
    """Holds scenes and tracks which one is active."""

    def __init__(self) -> None:
        self._scenes: dict[str, Scene] = {}
        self._active_scene_id: str | None = None
        self._lock = threading.Lock()

    @property
    def active_scene(self) -> Scene | None:
        with self._lock:
            if self._active_scene_id is None:
                return None
            return self._scenes.get(self._active_scene_id)

    def get_scene(self, scene_id: str) -> Scene | None:
        with self._lock:
            return self._scenes.get(scene_id)

    def add_scene(self, scene: Scene) -> Scene:
        """Add a scene; the first scene added becomes active."""
        with self._lock:
            self._scenes[scene.scene_id] = scene
            if self._active_scene_id is None:
                self._active_scene_id = scene.scene_id
        logger.debug("Scene added: %s", scene.name)
        return scene

    def remove_scene(self, scene_id: str) -> None:
        with self._lock:
            self._scenes.pop(scene_id, None)
            if self._active_scene_id == scene_id:
                self._active_scene_id = None

    def make_active(self, scene_id: str) -> Scene:
        """Switch the active scene."""
        with self._lock:
            scene = self._scenes.get(scene_id)
            if scene is None:
                raise KeyError(scene_id)
            self._active_scene_id = scene_id
        logger.info("Active scene: %s", scene.name)
        return scene

    def active_scene_items(self) -> list[SceneItem]:
        """Return the active scene's items in order, or nothing without an active scene."""
        scene = self.active_scene
        return scene.get_items() if scene else []
