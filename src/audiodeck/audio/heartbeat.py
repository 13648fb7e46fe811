"""Volmeter subscriptions with a silence heartbeat.

A native meter only calls back while the engine produces samples for its input.
When it goes quiet the subscriber should see the meter fall to silence instead
of freezing on the last reading, so every subscription runs a heartbeat timer:
each period without a native sample emits the last sample with level and peak
forced to zero.
"""

import logging
import threading
from collections.abc import Callable, Hashable

from audiodeck.audio.adapters import VOLMETER_UPDATE_INTERVAL, MeterAdapter, VolmeterCallback
from audiodeck.audio.errors import SubscriptionAlreadyClosedError
from audiodeck.audio.models import VolmeterSample

logger = logging.getLogger(__name__)

# Milliseconds between heartbeat ticks.
HEARTBEAT_PERIOD = VOLMETER_UPDATE_INTERVAL * 2


class VolmeterSubscription:
    """One subscriber's view of a source's meter.

    Native callbacks and heartbeat ticks both go through a single re-entrant
    lock, so emissions to the subscriber never overlap or reorder. Once
    ``unsubscribe`` returns, no further emission starts.
    """

    def __init__(
        self,
        source_id: str,
        meter: MeterAdapter,
        callback: VolmeterCallback,
        period_ms: float = HEARTBEAT_PERIOD,
        on_close: Callable[["VolmeterSubscription"], None] | None = None,
        autostart: bool = True,
    ) -> None:
        """Subscribe to a meter.

        Args:
            source_id: Source the meter belongs to
            meter: Meter adapter to receive native samples from
            callback: Subscriber receiving every emitted sample
            period_ms: Heartbeat period in milliseconds
            on_close: Called once after the subscription is torn down
            autostart: Start the heartbeat thread immediately
        """
        self.source_id = source_id
        self.meter = meter
        self.callback = callback
        self.period_ms = period_ms
        self.on_close = on_close

        self._lock = threading.RLock()
        self._got_event = False
        self._last_sample = VolmeterSample.silence()
        self._closed = False
        self._emitting_thread: int | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._token: Hashable | None = None

        # Native samples may arrive, and a failing subscriber may close us,
        # before add_callback returns
        token = meter.add_callback(self._on_native_sample)
        with self._lock:
            self._token = token
            closed_during_setup = self._closed
            if autostart and not closed_during_setup:
                self._spawn_heartbeat()
        if closed_during_setup:
            self._remove_native_callback(token)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def start(self) -> None:
        """Start the heartbeat thread."""
        with self._lock:
            if self._closed:
                raise SubscriptionAlreadyClosedError(
                    f"Volmeter subscription for '{self.source_id}' is closed"
                )
            self._spawn_heartbeat()

    def _spawn_heartbeat(self) -> None:
        # Caller holds self._lock
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._heartbeat_loop,
            name=f"volmeter-heartbeat-{self.source_id}",
            daemon=True,
        )
        self._thread.start()

    def tick(self) -> None:
        """Run one heartbeat step.

        Emits a silenced copy of the last sample when no native sample arrived
        since the previous tick, then clears the received flag.

        Raises:
            SubscriptionAlreadyClosedError: If the subscription was torn down
        """
        with self._lock:
            if self._closed:
                raise SubscriptionAlreadyClosedError(
                    f"Volmeter subscription for '{self.source_id}' is closed"
                )
            if not self._got_event:
                self._emit(self._last_sample.silenced())
            self._got_event = False

    def unsubscribe(self) -> None:
        """Stop the heartbeat and detach from the native meter. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._stop_event.set()
            inside_emission = self._emitting_thread == threading.get_ident()
            token = self._token

        if token is not None:
            self._remove_native_callback(token)

        thread = self._thread
        if thread is not None and thread is not threading.current_thread() and not inside_emission:
            thread.join(timeout=max(self.period_ms / 1000.0, 1.0))

        logger.debug("Volmeter subscription closed for %s", self.source_id)
        if self.on_close is not None:
            self.on_close(self)

    def _remove_native_callback(self, token: Hashable) -> None:
        try:
            self.meter.remove_callback(token)
        except Exception:
            logger.exception("Failed to detach volmeter callback for %s", self.source_id)

    def _on_native_sample(self, sample: VolmeterSample) -> None:
        with self._lock:
            if self._closed:
                return
            self._emit(sample)
            self._last_sample = sample
            self._got_event = True

    def _emit(self, sample: VolmeterSample) -> None:
        # Caller holds self._lock
        if self._closed:
            return
        self._emitting_thread = threading.get_ident()
        try:
            self.callback(sample)
        except Exception:
            logger.exception("Volmeter subscriber for %s failed, unsubscribing", self.source_id)
            self.unsubscribe()
        finally:
            self._emitting_thread = None

    def _heartbeat_loop(self) -> None:
        period = self.period_ms / 1000.0
        while not self._stop_event.wait(period):
            try:
                self.tick()
            except SubscriptionAlreadyClosedError:
                break
