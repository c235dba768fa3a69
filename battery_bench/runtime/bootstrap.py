"""Wiring of the orchestrator with its default collaborators.

A front end supplies the three platform bindings (telemetry reader, workload
player, system settings) and gets back a ready-to-use runtime whose
dispatcher already receives collaborator notifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from battery_bench.core.events.event_bus import EventBus
from battery_bench.core.events.sinks.file_recorder import FileRecorderSink
from battery_bench.core.events.sinks.sink_logging import LoggingEventSink
from battery_bench.orchestrator.dispatcher import EventDispatcher
from battery_bench.orchestrator.orchestrator import TestRunOrchestrator
from battery_bench.registry.battery_tests import DirectoryTestRegistry
from battery_bench.runtime.mlflow_run_logger import MlflowRunLogger
from battery_bench.runtime.prometheus_metrics import PrometheusRunReporter
from battery_bench.storage.history import RunHistory
from battery_bench.storage.run_store import JsonRunStore

if TYPE_CHECKING:
    from battery_bench.core.ports.player import EventPlayer
    from battery_bench.core.ports.system_state import SystemState
    from battery_bench.core.ports.telemetry import TelemetrySource
    from battery_bench.runtime.config import BenchConfig


@dataclass(slots=True)
class BenchRuntime:
    orchestrator: TestRunOrchestrator
    dispatcher: EventDispatcher
    store: JsonRunStore
    history: RunHistory
    registry: DirectoryTestRegistry
    event_bus: EventBus

    def close(self) -> None:
        self.event_bus.close()


def build_event_bus(config: BenchConfig) -> EventBus:
    sinks: list = [LoggingEventSink(logging.getLogger("battery_bench.events"), logging.DEBUG)]
    if config.event_log_path is not None:
        sinks.append(FileRecorderSink(config.event_log_path))
    return EventBus(sinks=sinks)


def build_runtime(
    config: BenchConfig,
    *,
    telemetry: TelemetrySource,
    player: EventPlayer,
    system_state: SystemState,
    on_shutdown_ready: Callable[[], None] | None = None,
) -> BenchRuntime:
    store = JsonRunStore(config.log_folder)
    history = RunHistory(store.read_all())
    registry = DirectoryTestRegistry(config.tests_dir)
    event_bus = build_event_bus(config)

    orchestrator = TestRunOrchestrator(
        telemetry=telemetry,
        player=player,
        system_state=system_state,
        registry=registry,
        writer=store,
        run_logs=[
            history,
            MlflowRunLogger(),
            PrometheusRunReporter(job=config.metrics_job),
        ],
        event_bus=event_bus,
        on_shutdown_ready=on_shutdown_ready,
    )

    dispatcher = EventDispatcher(orchestrator)
    dispatcher.attach(telemetry=telemetry, player=player)

    return BenchRuntime(
        orchestrator=orchestrator,
        dispatcher=dispatcher,
        store=store,
        history=history,
        registry=registry,
        event_bus=event_bus,
    )
