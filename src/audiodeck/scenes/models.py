"""Scene graph models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SceneItem:
    """A source placed in a scene."""

    source_id: str
    audio: bool = True


@dataclass
class Scene:
    """An ordered collection of scene items."""

    scene_id: str
    name: str
    items: list[SceneItem] = field(default_factory=list)

    def get_items(self) -> list[SceneItem]:
        """Return the scene's items in order."""
        return list(self.items)
