import pytest

from audiodeck.audio.errors import AudioSourceNotFoundError
from audiodeck.audio.models import AudioMutation, AudioSourceState, FaderState
from audiodeck.audio.registry import AudioSourceRegistry
from audiodeck.scenes.models import Scene, SceneItem


def _state(source_id: str, db: int = 0) -> AudioSourceState:
    return AudioSourceState(source_id=source_id, fader=FaderState(db=db, deflection=1.0, mul=1.0))


@pytest.fixture
def registry(sources_service, scenes_service):
    return AudioSourceRegistry(sources_service, scenes_service)


@pytest.fixture
def events(registry):
    recorded = []

    def listener(sender, mutation, state):
        recorded.append((mutation, state))

    registry.subscribe(listener)
    yield recorded
    registry.unsubscribe(listener)


class TestAudioSourceRegistry:
    """Test registry mutations and broadcasts."""

    def test_get_unknown_returns_none(self, registry):
        """Should return None for an unknown id."""
        assert registry.get("missing") is None

    def test_add_then_get(self, registry, events):
        """Should store the state and broadcast ADD."""
        state = _state("src1")

        registry.add(state)

        assert registry.get("src1") is state
        assert "src1" in registry
        assert events == [(AudioMutation.ADD, state)]

    def test_add_is_idempotent_by_id(self, registry):
        """Should overwrite an existing entry with the same id."""
        registry.add(_state("src1", db=-3))
        registry.add(_state("src1", db=-9))

        assert len(registry) == 1
        assert registry.get("src1").fader.db == -9

    def test_update_existing(self, registry, events):
        """Should replace the entry and broadcast UPDATE."""
        registry.add(_state("src1"))
        updated = _state("src1", db=-12)

        registry.update(updated)

        assert registry.get("src1") == updated
        assert events[-1] == (AudioMutation.UPDATE, updated)

    def test_update_missing_raises(self, registry, events):
        """Should refuse to update an untracked id."""
        with pytest.raises(AudioSourceNotFoundError):
            registry.update(_state("missing"))
        assert events == []

    def test_remove(self, registry, events):
        """Should delete the entry and broadcast REMOVE with the removed state."""
        state = registry.add(_state("src1"))

        removed = registry.remove("src1")

        assert removed is state
        assert registry.get("src1") is None
        assert events[-1] == (AudioMutation.REMOVE, state)

    def test_remove_missing_is_noop(self, registry, events):
        """Should do nothing and broadcast nothing for an unknown id."""
        assert registry.remove("missing") is None
        assert events == []

    def test_all_preserves_insertion_order(self, registry):
        """Should enumerate entries in insertion order."""
        for source_id in ["b", "a", "c"]:
            registry.add(_state(source_id))

        assert [s.source_id for s in registry.all()] == ["b", "a", "c"]


class TestListForActiveContext:
    """Test active-context listing."""

    @pytest.fixture
    def populated(self, registry, sources_service, scenes_service, source_factory):
        sources_service.add_source(source_factory("g1", is_global=True))
        sources_service.add_source(source_factory("s1"))
        sources_service.add_source(source_factory("g2", is_global=True))
        sources_service.add_source(source_factory("s2"))
        for source_id in ["s2", "g2", "s1", "g1"]:
            registry.add(_state(source_id))
        return registry

    def test_globals_before_scene_items(self, populated, scenes_service):
        """Should list globals in enumeration order then scene items in item order."""
        scenes_service.add_scene(Scene("main", "Main", [SceneItem("s2"), SceneItem("s1")]))

        ids = [s.source_id for s in populated.list_for_active_context()]

        assert ids == ["g1", "g2", "s2", "s1"]

    def test_deduplicates_globals_in_scene(self, populated, scenes_service):
        """Should list a global source once even when the scene contains it."""
        scenes_service.add_scene(Scene("main", "Main", [SceneItem("g2"), SceneItem("s1")]))

        ids = [s.source_id for s in populated.list_for_active_context()]

        assert ids == ["g1", "g2", "s1"]

    def test_skips_untracked_and_video_items(self, populated, scenes_service):
        """Should skip ids without an entry and scene items without audio."""
        scenes_service.add_scene(
            Scene(
                "main",
                "Main",
                [SceneItem("stale"), SceneItem("s1", audio=False), SceneItem("s2")],
            )
        )

        ids = [s.source_id for s in populated.list_for_active_context()]

        assert ids == ["g1", "g2", "s2"]

    def test_no_active_scene_lists_globals_only(self, populated):
        """Should list only global sources when no scene is active."""
        ids = [s.source_id for s in populated.list_for_active_context()]

        assert ids == ["g1", "g2"]

    def test_follows_active_scene_switch(self, populated, scenes_service):
        """Should list the items of whichever scene is active."""
        scenes_service.add_scene(Scene("a", "A", [SceneItem("s1")]))
        scenes_service.add_scene(Scene("b", "B", [SceneItem("s2")]))

        scenes_service.make_active("b")

        assert [s.source_id for s in populated.list_for_active_context()] == ["g1", "g2", "s2"]
