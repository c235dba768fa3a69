from __future__ import annotations

from typing import Any

from battery_bench.core.events.event_bus import EventBus


class NullEventBus(EventBus):
    """EventBus without sinks; the orchestrator default when none is wired."""

    def __init__(self) -> None:
        super().__init__(sinks=())

    def emit(self, event: Any) -> None:
        return
