"""
Synchronous event bus for orchestrator domain events.
"""
from __future__ import annotations

from typing import Any, Iterable

from battery_bench.core.events.event_sink import EventSink


class EventBus:
    """Publishes events to registered sinks in registration order."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    def register(self, sink: EventSink) -> None:
        """Attach a sink; it receives every event emitted afterwards."""
        self._sinks.append(sink)

    def emit(self, event: Any) -> None:
        if self._closed:
            return
        for sink in self._sinks:
            sink.on_event(event)

    def close(self) -> None:
        """
        Close every sink that exposes a close() method. Later emits are dropped.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True
