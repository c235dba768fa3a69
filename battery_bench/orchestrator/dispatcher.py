"""Serialized inbound event queue for the orchestrator.

Telemetry and player notifications arrive from independent sources, possibly
on other threads and possibly re-entrantly (a player may report ``finished``
from inside ``play_file``). The dispatcher funnels them, together with user
requests, through one FIFO queue and hands them to the orchestrator strictly
one at a time.

Invariant:
- an event is fully handled before the next one is taken from the queue
- events from one source keep their relative order
- only one thread at a time takes events from the queue
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union, assert_never

from battery_bench.core.domain.errors import BatteryBenchError

if TYPE_CHECKING:
    from battery_bench.core.domain.duration import PercentDuration, TimeDuration
    from battery_bench.core.domain.power import PowerState
    from battery_bench.core.ports.player import EventPlayer
    from battery_bench.core.ports.telemetry import TelemetrySource
    from battery_bench.orchestrator.orchestrator import TestRunOrchestrator

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Inbound events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StartRequested:
    test_id: str
    duration: TimeDuration | PercentDuration
    screen_brightness: int


@dataclass(frozen=True, slots=True)
class StopRequested:
    pass


@dataclass(frozen=True, slots=True)
class ExitRequested:
    pass


@dataclass(frozen=True, slots=True)
class TelemetryChanged:
    sample: PowerState


@dataclass(frozen=True, slots=True)
class PlayerReady:
    pass


@dataclass(frozen=True, slots=True)
class PlayerFinished:
    pass


InboundEvent = Union[
    StartRequested,
    StopRequested,
    ExitRequested,
    TelemetryChanged,
    PlayerReady,
    PlayerFinished,
]


class EventDispatcher:
    """Single-consumer event loop in front of a TestRunOrchestrator."""

    def __init__(self, orchestrator: TestRunOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._queue: queue.Queue[InboundEvent] = queue.Queue()
        # Held by whichever thread is draining; events are only taken under it.
        self._consumer = threading.Lock()
        self._owner: int | None = None
        self._posted = threading.Event()

    @property
    def orchestrator(self) -> TestRunOrchestrator:
        return self._orchestrator

    def attach(self, *, telemetry: TelemetrySource, player: EventPlayer) -> None:
        """Route collaborator notifications into the queue."""
        telemetry.connect_changed(lambda sample: self.post(TelemetryChanged(sample)))
        player.connect_ready(lambda: self.post(PlayerReady()))
        player.connect_finished(lambda: self.post(PlayerFinished()))

    def post(self, event: InboundEvent) -> None:
        """Enqueue an event. Safe to call from any thread or from a handler."""
        self._queue.put(event)
        self._posted.set()

    def dispatch(self, event: InboundEvent) -> int:
        """Enqueue an event and drain the queue on the calling thread."""
        self.post(event)
        return self.process_pending()

    def request_start(
        self,
        test_id: str,
        duration: TimeDuration | PercentDuration,
        screen_brightness: int,
    ) -> int:
        return self.dispatch(StartRequested(test_id, duration, screen_brightness))

    def request_stop(self) -> int:
        return self.dispatch(StopRequested())

    def request_exit(self) -> int:
        return self.dispatch(ExitRequested())

    def process_pending(self) -> int:
        """Handle queued events until the queue is empty.

        A nested call (from inside a handler) returns immediately; the outer
        drain loop picks the new events up in order. A call from another
        thread waits until the current drain finishes. Returns the number of
        events handled by this call.
        """
        return self._drain()

    def serve(self, stop: threading.Event, *, poll_interval: float = 0.1) -> None:
        """Block handling events until ``stop`` is set.

        Request errors (an unknown test id, for instance) are logged and the
        loop keeps serving.
        """
        while not stop.is_set():
            if not self._posted.wait(timeout=poll_interval):
                continue
            try:
                self._drain()
            except BatteryBenchError:
                LOGGER.exception("Request failed")

    def _drain(self) -> int:
        if self._owner == threading.get_ident():
            return 0

        with self._consumer:
            self._owner = threading.get_ident()
            self._posted.clear()
            handled = 0
            try:
                while True:
                    try:
                        event = self._queue.get_nowait()
                    except queue.Empty:
                        break
                    self._handle(event)
                    handled += 1
            finally:
                self._owner = None
                if not self._queue.empty():
                    # A failed handler leaves the rest for the next drain.
                    self._posted.set()
            return handled

    def _handle(self, event: InboundEvent) -> None:
        orchestrator = self._orchestrator
        if isinstance(event, TelemetryChanged):
            orchestrator.on_telemetry_changed(event.sample)
        elif isinstance(event, PlayerFinished):
            orchestrator.on_player_finished()
        elif isinstance(event, PlayerReady):
            orchestrator.on_player_ready()
        elif isinstance(event, StartRequested):
            orchestrator.start(event.test_id, event.duration, event.screen_brightness)
        elif isinstance(event, StopRequested):
            orchestrator.stop()
        elif isinstance(event, ExitRequested):
            orchestrator.request_exit()
        else:
            assert_never(event)
