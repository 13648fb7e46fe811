"""In-process sources service announcing source lifecycle through blinker signals."""

import logging
import threading
from dataclasses import replace

from blinker import Signal

from audiodeck.sources.models import Source

logger = logging.getLogger(__name__)


class SourcesService:
    """Keeps the set of known media sources and announces changes.

    Receivers of ``source_added``, ``source_updated`` and ``source_removed`` are
    called as ``receiver(sources_service, source=Source)``. Exceptions raised by
    a receiver propagate to the caller that triggered the event.
    """

    def __init__(self) -> None:
        self.source_added = Signal("source-added")
        self.source_updated = Signal("source-updated")
        self.source_removed = Signal("source-removed")
        self._sources: dict[str, Source] = {}
        self._lock = threading.Lock()

    def get_source(self, source_id: str) -> Source | None:
        """Return a source by id, or None."""
        with self._lock:
            return self._sources.get(source_id)

    def get_source_by_name(self, name: str) -> Source | None:
        """Return the first source with the given name, or None."""
        with self._lock:
            return next((s for s in self._sources.values() if s.name == name), None)

    def get_sources(self) -> list[Source]:
        """Return every source in the order it was added."""
        with self._lock:
            return list(self._sources.values())

    def add_source(self, source: Source) -> Source:
        """Register a new source and announce it."""
        with self._lock:
            if source.source_id in self._sources:
                raise ValueError(f"Source '{source.source_id}' already exists")
            self._sources[source.source_id] = source
        logger.info("Source added: %s (%s)", source.name, source.source_id)
        self.source_added.send(self, source=source)
        return source

    def update_source(self, source_id: str, **changes: object) -> Source:
        """Apply field changes to a source and announce the new value."""
        with self._lock:
            current = self._sources.get(source_id)
            if current is None:
                raise KeyError(source_id)
            source = replace(current, **changes)  # type: ignore[arg-type]
            self._sources[source_id] = source
        logger.debug("Source updated: %s %s", source_id, changes)
        self.source_updated.send(self, source=source)
        return source

    def remove_source(self, source_id: str) -> Source | None:
        """Forget a source and announce its removal; unknown ids are ignored."""
        with self._lock:
            source = self._sources.pop(source_id, None)
        if source is None:
            return None
        logger.info("Source removed: %s (%s)", source.name, source_id)
        self.source_removed.send(self, source=source)
        return source

    def set_muted(self, source_id: str, muted: bool) -> Source:
        """Set the mute flag of a source."""
        return self.update_source(source_id, muted=muted)

    def is_muted(self, source_id: str) -> bool:
        """Return the mute flag of a source; unknown sources read as unmuted."""
        source = self.get_source(source_id)
        return source.muted if source else False
