from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from battery_bench.core.domain.battery_test import BatteryTest
from battery_bench.core.domain.duration import TimeDuration
from battery_bench.core.domain.power import PowerState
from battery_bench.core.domain.run import TestRun
from battery_bench.core.events.event_bus import EventBus
from battery_bench.core.ports.run_writer import WriteResult
from battery_bench.orchestrator.orchestrator import TestRunOrchestrator
from battery_bench.registry.battery_tests import StaticTestRegistry

# ---------------------------------------------------------------------------
# Battery tests used across the suite
# ---------------------------------------------------------------------------

IDLE_TEST = BatteryTest(id="idle", name="Idle", loop_file="idle.loop")

FULL_TEST = BatteryTest(
    id="office",
    name="Office",
    prologue_file="office.prologue",
    loop_file="office.loop",
    epilogue_file="office.epilogue",
)

PROLOGUE_ONLY_TEST = BatteryTest(
    id="video",
    name="Video",
    prologue_file="video.prologue",
    loop_file="video.loop",
)


def make_state(
    *,
    time: float,
    energy_now: float | None = 40.0,
    energy_full: float | None = 50.0,
    energy_full_design: float | None = 60.0,
    online: bool = False,
) -> PowerState:
    return PowerState(
        online=online,
        energy_now=energy_now,
        energy_full=energy_full,
        energy_full_design=energy_full_design,
        time=time,
    )


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTelemetry:
    def __init__(self, state: PowerState) -> None:
        self.state = state
        self._listeners: list[Callable[[PowerState], None]] = []

    def get_state(self) -> PowerState:
        return self.state

    def connect_changed(self, callback: Callable[[PowerState], None]) -> None:
        self._listeners.append(callback)

    def emit(self, sample: PowerState) -> None:
        self.state = sample
        for callback in self._listeners:
            callback(sample)


class FakePlayer:
    def __init__(self, ready: bool = True) -> None:
        self.ready = ready
        self.played: list[str] = []
        self.stop_calls = 0
        self._ready_listeners: list[Callable[[], None]] = []
        self._finished_listeners: list[Callable[[], None]] = []

    def is_ready(self) -> bool:
        return self.ready

    def play_file(self, path: str) -> None:
        self.played.append(path)

    def stop(self) -> None:
        self.stop_calls += 1

    def connect_ready(self, callback: Callable[[], None]) -> None:
        self._ready_listeners.append(callback)

    def connect_finished(self, callback: Callable[[], None]) -> None:
        self._finished_listeners.append(callback)

    def emit_ready(self) -> None:
        self.ready = True
        for callback in self._ready_listeners:
            callback()

    def emit_finished(self) -> None:
        for callback in self._finished_listeners:
            callback()


class FakeSystemState:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def save(self) -> None:
        self.calls.append(("save",))

    def restore(self) -> None:
        self.calls.append(("restore",))

    def set_brightness(self, screen: int, keyboard: int) -> None:
        self.calls.append(("set_brightness", screen, keyboard))


class FakeWriter:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.written: list[TestRun] = []

    def write(self, run: TestRun) -> WriteResult:
        self.written.append(run)
        if not self.ok:
            return WriteResult(ok=False, error="disk full")
        run.filename = f"/fake/{run.test_id}-{run.start_time}.json"
        return WriteResult(ok=True, path=run.filename)


class RecordingRunLog:
    def __init__(self) -> None:
        self.registered: list[TestRun] = []

    def register(self, run: TestRun) -> None:
        self.registered.append(run)


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[Any] = []

    def on_event(self, event: Any) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]


@dataclass
class Harness:
    orchestrator: TestRunOrchestrator
    telemetry: FakeTelemetry
    player: FakePlayer
    system_state: FakeSystemState
    writer: FakeWriter
    run_log: RecordingRunLog
    sink: RecordingSink
    clock: FakeClock
    shutdown_calls: list[bool] = field(default_factory=list)

    def start(
        self,
        test_id: str = "idle",
        duration: Any = None,
        screen_brightness: int = 50,
    ) -> bool:
        policy = duration if duration is not None else TimeDuration(seconds=300)
        return self.orchestrator.start(test_id, policy, screen_brightness)

    def sample(self, **kwargs: Any) -> PowerState:
        state = make_state(**kwargs)
        self.orchestrator.on_telemetry_changed(state)
        return state

    def finished(self) -> None:
        self.orchestrator.on_player_finished()


@pytest.fixture()
def make_harness() -> Callable[..., Harness]:
    def _factory(
        *,
        player_ready: bool = True,
        writer_ok: bool = True,
        run_logs: list[Any] | None = None,
    ) -> Harness:
        telemetry = FakeTelemetry(make_state(time=0.0, online=True))
        player = FakePlayer(ready=player_ready)
        system_state = FakeSystemState()
        writer = FakeWriter(ok=writer_ok)
        run_log = RecordingRunLog()
        sink = RecordingSink()
        clock = FakeClock()
        shutdown_calls: list[bool] = []

        orchestrator = TestRunOrchestrator(
            telemetry=telemetry,
            player=player,
            system_state=system_state,
            registry=StaticTestRegistry([IDLE_TEST, FULL_TEST, PROLOGUE_ONLY_TEST]),
            writer=writer,
            run_logs=[run_log, *(run_logs or [])],
            event_bus=EventBus(sinks=[sink]),
            clock=clock,
            on_shutdown_ready=lambda: shutdown_calls.append(True),
        )
        return Harness(
            orchestrator=orchestrator,
            telemetry=telemetry,
            player=player,
            system_state=system_state,
            writer=writer,
            run_log=run_log,
            sink=sink,
            clock=clock,
            shutdown_calls=shutdown_calls,
        )

    return _factory


@pytest.fixture()
def harness(make_harness: Callable[..., Harness]) -> Harness:
    return make_harness()
