"""
Domain event models.

These events represent immutable facts observed while the orchestrator runs
a benchmark. They are consumed by loggers, recorders and presentation layers.
"""
from __future__ import annotations

from dataclasses import dataclass

from battery_bench.core.domain.phase import Phase


@dataclass(slots=True)
class PhaseChangedEvent:
    ts: float
    test_id: str | None
    prev_phase: Phase
    next_phase: Phase


@dataclass(slots=True)
class SampleRecordedEvent:
    ts: float
    test_id: str
    sample_index: int
    online: bool
    energy_now: float | None

    power: float | None
    battery_life: float | None
    battery_life_design: float | None


@dataclass(slots=True)
class RunFinalizedEvent:
    ts: float
    test_id: str
    start_time: int
    sample_count: int

    persisted: bool
    filename: str | None


@dataclass(slots=True)
class PlayerReadyEvent:
    ts: float


@dataclass(slots=True)
class ShutdownReadyEvent:
    ts: float
