"""Audio source lifecycle and command surface.

AudioService follows the sources service: every audio-capable source gets a
fader adapter and a meter adapter from the mixer engine plus an entry in the
AudioSourceRegistry, and loses all three together when it is removed or stops
being audio-capable. AudioSource is a lightweight handle bound to one tracked
source id that writes through the adapters and refreshes the registry.
"""

import logging
import threading

from audiodeck.audio.adapters import FaderAdapter, MeterAdapter, MixerEngine, VolmeterCallback
from audiodeck.audio.errors import AdapterUnavailableError, AudioSourceNotFoundError
from audiodeck.audio.heartbeat import HEARTBEAT_PERIOD, VolmeterSubscription
from audiodeck.audio.models import AudioSourceState, FaderState
from audiodeck.audio.registry import AudioSourceRegistry
from audiodeck.scenes.service import ScenesService
from audiodeck.sources.models import Source
from audiodeck.sources.service import SourcesService

logger = logging.getLogger(__name__)


class AudioService:
    """Keeps the audio source registry in step with the sources service."""

    def __init__(
        self,
        sources_service: SourcesService,
        scenes_service: ScenesService,
        mixer: MixerEngine,
        heartbeat_period_ms: float = HEARTBEAT_PERIOD,
    ) -> None:
        self.sources_service = sources_service
        self.scenes_service = scenes_service
        self.mixer = mixer
        self.heartbeat_period_ms = heartbeat_period_ms
        self.registry = AudioSourceRegistry(sources_service, scenes_service)

        self._faders: dict[str, FaderAdapter] = {}
        self._volmeters: dict[str, MeterAdapter] = {}
        self._subscriptions: dict[str, set[VolmeterSubscription]] = {}
        self._lock = threading.RLock()
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self) -> None:
        """Listen to source lifecycle signals and adopt existing audio sources."""
        if self._started:
            return
        self.sources_service.source_added.connect(self._handle_source_added)
        self.sources_service.source_updated.connect(self._handle_source_updated)
        self.sources_service.source_removed.connect(self._handle_source_removed)
        self._started = True

        for source in self.sources_service.get_sources():
            if source.audio and source.source_id not in self.registry:
                self._create_audio_source(source)
        logger.info("AudioService started, tracking %d audio source(s)", len(self.registry))

    def stop(self) -> None:
        """Disconnect from the sources service and tear down every tracked source."""
        if not self._started:
            return
        self.sources_service.source_added.disconnect(self._handle_source_added)
        self.sources_service.source_updated.disconnect(self._handle_source_updated)
        self.sources_service.source_removed.disconnect(self._handle_source_removed)
        self._started = False

        with self._lock:
            source_ids = list(self._faders)
        for source_id in source_ids:
            self._remove_audio_source(source_id)
        logger.info("AudioService stopped")

    def _handle_source_added(self, sender: object, source: Source) -> None:
        if not source.audio:
            return
        self._create_audio_source(source)

    def _handle_source_updated(self, sender: object, source: Source) -> None:
        if source.source_id not in self.registry:
            return
        if not source.audio:
            self._remove_audio_source(source.source_id)

    def _handle_source_removed(self, sender: object, source: Source) -> None:
        if source.source_id in self.registry:
            self._remove_audio_source(source.source_id)

    def _create_audio_source(self, source: Source) -> AudioSourceState:
        source_id = source.source_id
        audio_input = source.get_input()
        volmeter: MeterAdapter | None = None
        fader: FaderAdapter | None = None
        try:
            volmeter = self.mixer.create_volmeter(source_id)
            volmeter.attach(audio_input)
            fader = self.mixer.create_fader(source_id)
            fader.attach(audio_input)
            fader_state = FaderState.from_adapter(fader)
        except Exception as e:
            for adapter in (fader, volmeter):
                if adapter is not None:
                    self._detach_adapter(source_id, adapter)
            logger.error("Failed to create adapters for source %s: %s", source_id, e)
            raise AdapterUnavailableError(source_id, str(e)) from e

        if source_id in self.registry:
            # Re-announced source: drop the old pair before installing the new one
            self._remove_audio_source(source_id)

        with self._lock:
            self._faders[source_id] = fader
            self._volmeters[source_id] = volmeter
            state = self.registry.add(AudioSourceState(source_id=source_id, fader=fader_state))
        logger.info("Tracking audio source %s (%s)", source.name, source_id)
        return state

    def _remove_audio_source(self, source_id: str) -> None:
        with self._lock:
            subscriptions = self._subscriptions.pop(source_id, set())
        for subscription in list(subscriptions):
            subscription.unsubscribe()

        with self._lock:
            fader = self._faders.pop(source_id, None)
            volmeter = self._volmeters.pop(source_id, None)
        try:
            self.registry.remove(source_id)
        finally:
            # A raising registry listener must not leave the adapters open
            for adapter in (fader, volmeter):
                if adapter is not None:
                    self._detach_adapter(source_id, adapter)
        logger.info("Stopped tracking audio source %s", source_id)

    @staticmethod
    def _detach_adapter(source_id: str, adapter: FaderAdapter | MeterAdapter) -> None:
        try:
            adapter.detach()
        except Exception:
            logger.exception("Failed to detach adapter for source %s", source_id)

    # ------------------------------------------------------------------
    # Queries

    def get_source(self, source_id: str) -> "AudioSource | None":
        """Return a handle for a tracked source, or None for unknown ids."""
        try:
            return AudioSource(self, source_id)
        except AudioSourceNotFoundError:
            return None

    def get_sources_for_current_scene(self) -> list["AudioSource"]:
        """Return handles for global sources followed by the active scene's sources."""
        sources = []
        for state in self.registry.list_for_active_context():
            audio_source = self.get_source(state.source_id)
            if audio_source is not None:
                sources.append(audio_source)
        return sources

    def is_tracked(self, source_id: str) -> bool:
        """Return True when a source has an adapter pair and a registry entry."""
        with self._lock:
            return source_id in self._faders and source_id in self.registry

    def fetch_fader_state(self, source_id: str) -> FaderState:
        """Read a source's fader state fresh from its adapter."""
        with self._lock:
            return FaderState.from_adapter(self._require_fader(source_id))

    # ------------------------------------------------------------------
    # Commands

    def update_fader(self, source_id: str, **fields: float) -> AudioSourceState:
        """Write fader fields to the adapter, then publish the re-read state."""
        with self._lock:
            fader = self._require_fader(source_id)
            for name, value in fields.items():
                setattr(fader, name, value)
            state = AudioSourceState(source_id=source_id, fader=FaderState.from_adapter(fader))
            return self.registry.update(state)

    def subscribe_volmeter(
        self, source_id: str, callback: VolmeterCallback
    ) -> VolmeterSubscription:
        """Open a heartbeat-backed meter subscription for a tracked source."""
        with self._lock:
            volmeter = self._volmeters.get(source_id)
        if volmeter is None:
            raise AudioSourceNotFoundError(source_id)

        subscription = VolmeterSubscription(
            source_id,
            volmeter,
            callback,
            period_ms=self.heartbeat_period_ms,
            on_close=self._forget_subscription,
        )
        # Subscribers may call back into the service while holding the
        # subscription lock, so that lock is never taken under self._lock
        with self._lock:
            still_tracked = self._volmeters.get(source_id) is volmeter
            if still_tracked:
                self._subscriptions.setdefault(source_id, set()).add(subscription)
        if not still_tracked:
            subscription.unsubscribe()
            raise AudioSourceNotFoundError(source_id)
        if subscription.closed:
            # Closed before registration, so on_close found nothing to forget
            self._forget_subscription(subscription)
        return subscription

    def active_subscriptions(self, source_id: str) -> int:
        """Return the number of open meter subscriptions for a source."""
        with self._lock:
            return len(self._subscriptions.get(source_id, ()))

    def _forget_subscription(self, subscription: VolmeterSubscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.source_id)
            if subscriptions is not None:
                subscriptions.discard(subscription)
                if not subscriptions:
                    del self._subscriptions[subscription.source_id]

    def _require_fader(self, source_id: str) -> FaderAdapter:
        fader = self._faders.get(source_id)
        if fader is None:
            raise AudioSourceNotFoundError(source_id)
        return fader


class AudioSource:
    """Handle for one tracked audio source.

    Holds only the source id and a reference to the owning AudioService. Fields
    are never mirrored live: call ``snapshot()`` to read current values.
    """

    def __init__(self, audio_service: AudioService, source_id: str) -> None:
        if not audio_service.is_tracked(source_id):
            raise AudioSourceNotFoundError(source_id)
        self.audio_service = audio_service
        self.source_id = source_id

    def __repr__(self) -> str:
        return f"AudioSource({self.source_id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AudioSource):
            return NotImplemented
        return self.source_id == other.source_id and self.audio_service is other.audio_service

    def __hash__(self) -> int:
        return hash(self.source_id)

    @property
    def source(self) -> Source | None:
        """The underlying media source."""
        return self.audio_service.sources_service.get_source(self.source_id)

    @property
    def name(self) -> str:
        source = self.source
        return source.name if source else self.source_id

    def snapshot(self) -> AudioSourceState:
        """Return the source state read fresh from the fader adapter."""
        fader = self.audio_service.fetch_fader_state(self.source_id)
        return AudioSourceState(source_id=self.source_id, fader=fader)

    def state(self) -> AudioSourceState:
        """Return the registry's cached state for this source."""
        state = self.audio_service.registry.get(self.source_id)
        if state is None:
            raise AudioSourceNotFoundError(self.source_id)
        return state

    def set_deflection(self, deflection: float) -> AudioSourceState:
        """Move the fader to a normalized position."""
        return self.audio_service.update_fader(self.source_id, deflection=deflection)

    def set_mul(self, mul: float) -> AudioSourceState:
        """Set the fader's linear gain multiplier."""
        return self.audio_service.update_fader(self.source_id, mul=mul)

    def set_muted(self, muted: bool) -> None:
        """Mute or unmute the underlying source.

        The sources service re-announces the source; no registry update is
        published from here.
        """
        self.audio_service.sources_service.set_muted(self.source_id, muted)

    def subscribe_volmeter(self, callback: VolmeterCallback) -> VolmeterSubscription:
        """Subscribe to this source's meter, with silence heartbeats."""
        return self.audio_service.subscribe_volmeter(self.source_id, callback)
