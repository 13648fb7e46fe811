"""Canonical in-memory registry of audio sources."""

import logging
import threading
from collections.abc import Callable

from blinker import Signal

from audiodeck.audio.errors import AudioSourceNotFoundError
from audiodeck.audio.models import AudioMutation, AudioSourceState
from audiodeck.scenes.service import ScenesService
from audiodeck.sources.service import SourcesService

logger = logging.getLogger(__name__)

RegistryListener = Callable[..., None]


class AudioSourceRegistry:
    """Maps source ids to AudioSourceState snapshots.

    Every mutation is applied under a lock and then broadcast through
    ``changed`` as ``(registry, mutation=AudioMutation, state=AudioSourceState)``.
    Readers only ever receive frozen snapshots.
    """

    def __init__(self, sources_service: SourcesService, scenes_service: ScenesService) -> None:
        self.sources_service = sources_service
        self.scenes_service = scenes_service
        self.changed = Signal("audio-source-changed")
        self._audio_sources: dict[str, AudioSourceState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._audio_sources)

    def __contains__(self, source_id: object) -> bool:
        with self._lock:
            return source_id in self._audio_sources

    def get(self, source_id: str) -> AudioSourceState | None:
        """Return the current state of a source, or None if it is not tracked."""
        with self._lock:
            return self._audio_sources.get(source_id)

    def all(self) -> list[AudioSourceState]:
        """Return every tracked source in insertion order."""
        with self._lock:
            return list(self._audio_sources.values())

    def list_for_active_context(self) -> list[AudioSourceState]:
        """List global sources followed by the active scene's audio sources.

        Ids are deduplicated; ids with no registry entry are skipped since scene
        data may reference a source that is being added or removed.
        """
        source_ids = [
            source.source_id for source in self.sources_service.get_sources() if source.is_global
        ]
        source_ids.extend(
            item.source_id for item in self.scenes_service.active_scene_items() if item.audio
        )

        states: list[AudioSourceState] = []
        seen: set[str] = set()
        for source_id in source_ids:
            if source_id in seen:
                continue
            seen.add(source_id)
            state = self.get(source_id)
            if state is None:
                logger.debug("Skipping untracked source %s in active context", source_id)
                continue
            states.append(state)
        return states

    def add(self, state: AudioSourceState) -> AudioSourceState:
        """Insert or overwrite the entry for ``state.source_id``."""
        with self._lock:
            self._audio_sources[state.source_id] = state
        self._publish(AudioMutation.ADD, state)
        return state

    def update(self, state: AudioSourceState) -> AudioSourceState:
        """Overwrite an existing entry.

        Raises:
            AudioSourceNotFoundError: If the source is not tracked
        """
        with self._lock:
            if state.source_id not in self._audio_sources:
                raise AudioSourceNotFoundError(state.source_id)
            self._audio_sources[state.source_id] = state
        self._publish(AudioMutation.UPDATE, state)
        return state

    def remove(self, source_id: str) -> AudioSourceState | None:
        """Delete the entry for ``source_id``; does nothing if it is absent."""
        with self._lock:
            state = self._audio_sources.pop(source_id, None)
        if state is not None:
            self._publish(AudioMutation.REMOVE, state)
        return state

    def subscribe(self, listener: RegistryListener) -> None:
        """Connect a listener to registry changes (strong reference)."""
        self.changed.connect(listener, weak=False)

    def unsubscribe(self, listener: RegistryListener) -> None:
        """Disconnect a listener from registry changes."""
        self.changed.disconnect(listener)

    def _publish(self, mutation: AudioMutation, state: AudioSourceState) -> None:
        logger.debug("Audio source %s: %s", mutation.value, state.source_id)
        self.changed.send(self, mutation=mutation, state=state)
