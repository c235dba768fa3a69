"""
Semantic test: runtime wiring end to end.

Invariant:
A runtime built from a BenchConfig loads tests from the configured
directory, receives collaborator notifications through its dispatcher,
writes finished runs to the log folder, adds them to the in-memory history
and records domain events when an event log is configured.
"""

from __future__ import annotations

import json
from pathlib import Path

from battery_bench.core.domain.duration import TimeDuration
from battery_bench.core.domain.phase import Phase
from battery_bench.core.domain.power import PowerState
from battery_bench.runtime.bootstrap import build_runtime
from battery_bench.runtime.config import BenchConfig


def _config(tmp_path: Path) -> BenchConfig:
    tests_dir = tmp_path / "tests"
    tests_dir.mkdir()
    (tests_dir / "idle.toml").write_text('name = "Idle"\nloop_file = "idle.loop"\n', encoding="utf-8")
    return BenchConfig(
        log_folder=tmp_path / "logs",
        tests_dir=tests_dir,
        event_log_path=tmp_path / "events.jsonl",
    )


def test_runtime_records_a_complete_run(harness, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MLFLOW_TRACKING_URI", raising=False)
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)
    shutdown: list[bool] = []

    runtime = build_runtime(
        _config(tmp_path),
        telemetry=harness.telemetry,
        player=harness.player,
        system_state=harness.system_state,
        on_shutdown_ready=lambda: shutdown.append(True),
    )
    assert [t.id for t in runtime.registry.list_all()] == ["idle"]
    assert len(runtime.history) == 0

    runtime.dispatcher.request_start("idle", TimeDuration(seconds=600), 40)
    harness.telemetry.emit(PowerState(online=True, energy_now=40.0, energy_full=50.0, time=0.0))
    harness.telemetry.emit(PowerState(online=False, energy_now=40.0, energy_full=50.0, time=10.0))
    harness.telemetry.emit(PowerState(online=False, energy_now=39.0, energy_full=50.0, time=370.0))
    runtime.dispatcher.request_exit()
    harness.player.emit_finished()
    runtime.dispatcher.process_pending()
    runtime.close()

    orchestrator = runtime.orchestrator
    assert orchestrator.phase is Phase.STOPPED
    assert shutdown == [True]
    assert harness.player.played == [str(tmp_path / "tests" / "idle.loop")]
    assert harness.system_state.calls == [("save",), ("set_brightness", 40, 0), ("restore",)]

    written = list((tmp_path / "logs").glob("*.json"))
    assert [str(p) for p in written] == [orchestrator.run.filename]
    assert runtime.history.runs == (orchestrator.run,)

    reloaded = runtime.store.read_all()
    assert len(reloaded) == 1
    assert [s.time for s in reloaded[0].samples] == [10.0, 370.0]

    events = [json.loads(line) for line in (tmp_path / "events.jsonl").read_text(encoding="utf-8").splitlines()]
    event_types = [e["event_type"] for e in events]
    assert "SampleRecordedEvent" in event_types
    assert event_types[-2:] == ["RunFinalizedEvent", "ShutdownReadyEvent"]


def test_runtime_loads_existing_history(harness, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MLFLOW_TRACKING_URI", raising=False)
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)
    config = _config(tmp_path)
    config.event_log_path = None

    first = build_runtime(
        config, telemetry=harness.telemetry, player=harness.player, system_state=harness.system_state
    )
    first.dispatcher.request_start("idle", TimeDuration(seconds=600), 40)
    harness.telemetry.emit(PowerState(online=False, energy_now=40.0, time=0.0))
    harness.telemetry.emit(PowerState(online=False, energy_now=39.5, time=60.0))
    first.dispatcher.request_stop()
    harness.player.emit_finished()
    first.dispatcher.process_pending()
    first.close()

    second = build_runtime(
        config, telemetry=harness.telemetry, player=harness.player, system_state=harness.system_state
    )

    assert len(second.history) == 1
    assert second.history.runs[0].test_id == "idle"
