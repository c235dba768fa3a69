"""Test-run orchestrator.

The orchestrator is the single owner of the active TestRun. It sequences the
prologue, measurement and epilogue phases of a benchmark run, reacting to
start/stop requests, telemetry samples and player completion events.

Events must be delivered one at a time (see EventDispatcher); no handler in
this module is re-entrant with respect to another handler.
"""

# pylint: disable=too-many-instance-attributes,too-many-arguments
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable, assert_never

from battery_bench.core.domain.errors import TestRunError
from battery_bench.core.domain.phase import (
    Phase,
    can_configure,
    can_start,
    is_valid_transition,
)
from battery_bench.core.domain.power import PowerState, PowerStatistics, compute_statistics
from battery_bench.core.domain.run import TestRun
from battery_bench.core.events.events import (
    PhaseChangedEvent,
    PlayerReadyEvent,
    RunFinalizedEvent,
    SampleRecordedEvent,
    ShutdownReadyEvent,
)
from battery_bench.core.events.sinks.null_event_bus import NullEventBus
from battery_bench.orchestrator.status import status_title as format_status_title

if TYPE_CHECKING:
    from battery_bench.core.domain.battery_test import BatteryTest
    from battery_bench.core.domain.duration import PercentDuration, TimeDuration
    from battery_bench.core.events.event_bus import EventBus
    from battery_bench.core.ports.battery_tests import BatteryTestRegistry
    from battery_bench.core.ports.player import EventPlayer
    from battery_bench.core.ports.run_log import RunLog
    from battery_bench.core.ports.run_writer import RunWriter
    from battery_bench.core.ports.system_state import SystemState
    from battery_bench.core.ports.telemetry import TelemetrySource

LOGGER = logging.getLogger(__name__)


class TestRunOrchestrator:
    """Finite-state controller for one benchmark run at a time.

    Invariants:
    - exactly one Phase at a time; every handler is total over all phases
    - samples are only appended while RUNNING, one per telemetry event
    - statistics always span (baseline, latest sample)
    - a run is persisted and logged iff it is non-trivial at finalize time
    """

    __test__ = False

    def __init__(
        self,
        *,
        telemetry: TelemetrySource,
        player: EventPlayer,
        system_state: SystemState,
        registry: BatteryTestRegistry,
        writer: RunWriter,
        run_logs: Iterable[RunLog] = (),
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.time,
        on_shutdown_ready: Callable[[], None] | None = None,
    ) -> None:
        self._telemetry = telemetry
        self._player = player
        self._system_state = system_state
        self._registry = registry
        self._writer = writer
        self._run_logs: list[RunLog] = list(run_logs)
        self._event_bus = event_bus if event_bus is not None else NullEventBus()
        self._clock = clock
        self._on_shutdown_ready = on_shutdown_ready

        self._phase = Phase.STOPPED
        # Latches: intent recorded now, acted upon at a later resumption point.
        self._stop_requested = False
        self._exit_requested = False

        self._test: BatteryTest | None = None
        self._run: TestRun | None = None
        self._statistics: PowerStatistics | None = None

    # ---- Read-only view ----

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    @property
    def test(self) -> BatteryTest | None:
        return self._test

    @property
    def run(self) -> TestRun | None:
        """Most recent run; retained after finalize until the next start."""
        return self._run

    @property
    def active_run(self) -> TestRun | None:
        """The run accepting samples, or None when stopped."""
        if self._phase is Phase.STOPPED:
            return None
        return self._run

    @property
    def statistics(self) -> PowerStatistics | None:
        return self._statistics

    @property
    def can_start(self) -> bool:
        return can_start(
            self._phase,
            stop_requested=self._stop_requested,
            player_ready=self._player.is_ready(),
        )

    @property
    def can_configure(self) -> bool:
        return can_configure(self._phase)

    def current_state(self) -> PowerState:
        """Fresh telemetry snapshot, for presentation."""
        return self._telemetry.get_state()

    def status_title(self) -> str:
        return format_status_title(self._phase, self.current_state(), self._run)

    # ---- Requests ----

    def start(
        self,
        test_id: str,
        duration: TimeDuration | PercentDuration,
        screen_brightness: int,
    ) -> bool:
        """Begin a new run. Returns False (and does nothing) unless STOPPED.

        Raises UnknownBatteryTestError if the test id is not registered and
        TestRunError if the brightness is not a percentage, in both cases
        before touching any state.
        """
        if self._phase is not Phase.STOPPED:
            LOGGER.debug("Ignoring start request", extra={"phase": self._phase.value})
            return False

        if not 0 <= screen_brightness <= 100:
            raise TestRunError(f"Screen brightness must be within 0..100, got {screen_brightness}")
        test = self._registry.get_by_id(test_id)

        # A finalized run is kept for display only; a new start supersedes it.
        self._run = None
        self._statistics = None

        self._test = test
        self._run = TestRun(
            test_id=test.id,
            name=test.name,
            duration=duration,
            screen_brightness=screen_brightness,
            start_time=int(self._clock()),
        )

        self._system_state.save()
        self._system_state.set_brightness(screen_brightness, 0)

        LOGGER.info(
            "Starting battery test",
            extra={
                "test_id": test.id,
                "duration": duration.model_dump(),
                "screen_brightness": screen_brightness,
            },
        )

        if test.prologue_file is not None:
            self._player.play_file(test.prologue_file)
            self._set_phase(Phase.PROLOGUE)
        else:
            self._set_phase(Phase.WAITING)
        return True

    def stop(self) -> None:
        """Request the current run to stop. Idempotent."""
        phase = self._phase
        if phase is Phase.PROLOGUE:
            # Prologue playback cannot be interrupted; honoured on finished().
            self._stop_requested = True
        elif phase is Phase.WAITING:
            self._enter_epilogue()
        elif phase is Phase.RUNNING:
            self._player.stop()
            self._set_phase(Phase.STOPPING)
        elif phase is Phase.STOPPED or phase is Phase.STOPPING or phase is Phase.EPILOGUE:
            pass
        else:
            assert_never(phase)

    def request_exit(self) -> bool:
        """Ask for shutdown.

        Returns True if shutdown may proceed immediately. Otherwise the
        current run is stopped and on_shutdown_ready fires once it reaches
        STOPPED.
        """
        if self._phase is Phase.STOPPED:
            return True
        self._exit_requested = True
        self.stop()
        return False

    # ---- Collaborator events ----

    def on_player_ready(self) -> None:
        self._event_bus.emit(PlayerReadyEvent(ts=self._clock()))

    def on_player_finished(self) -> None:
        phase = self._phase
        if phase is Phase.PROLOGUE:
            self._set_phase(Phase.WAITING)
            if self._stop_requested:
                self._stop_requested = False
                self.stop()
        elif phase is Phase.RUNNING:
            run = self._require_run()
            if run.is_done():
                self._enter_epilogue()
            else:
                self._player.play_file(self._require_test().loop_file)
        elif phase is Phase.STOPPING:
            self._enter_epilogue()
        elif phase is Phase.EPILOGUE:
            self._finalize()
        elif phase is Phase.STOPPED or phase is Phase.WAITING:
            LOGGER.debug("Ignoring player finished", extra={"phase": phase.value})
        else:
            assert_never(phase)

    def on_telemetry_changed(self, sample: PowerState) -> None:
        phase = self._phase
        if phase is Phase.WAITING:
            if sample.online:
                # Still on external power; measurement cannot begin.
                return
            run = self._require_run()
            run.set_start_time(int(self._clock()))
            run.add(sample)
            self._set_phase(Phase.RUNNING)
            self._player.play_file(self._require_test().loop_file)
        elif phase is Phase.RUNNING:
            run = self._require_run()
            try:
                run.add(sample)
            except TestRunError:
                LOGGER.warning("Dropping out-of-order telemetry sample", exc_info=True)
                return
            baseline = run.start_state
            assert baseline is not None
            self._statistics = compute_statistics(baseline, sample)
            self._event_bus.emit(
                SampleRecordedEvent(
                    ts=self._clock(),
                    test_id=run.test_id,
                    sample_index=len(run.samples) - 1,
                    online=sample.online,
                    energy_now=sample.energy_now,
                    power=self._statistics.power,
                    battery_life=self._statistics.battery_life,
                    battery_life_design=self._statistics.battery_life_design,
                )
            )
        elif (
            phase is Phase.STOPPED
            or phase is Phase.PROLOGUE
            or phase is Phase.STOPPING
            or phase is Phase.EPILOGUE
        ):
            pass
        else:
            assert_never(phase)

    # ---- Internal transitions ----

    def _enter_epilogue(self) -> None:
        test = self._require_test()
        if test.epilogue_file is not None:
            self._player.play_file(test.epilogue_file)
            self._set_phase(Phase.EPILOGUE)
        else:
            self._finalize()

    def _finalize(self) -> None:
        self._set_phase(Phase.STOPPED)

        run = self._require_run()
        try:
            persisted = False
            if run.is_nontrivial:
                persisted = self._persist(run)
                self._register(run)

            self._event_bus.emit(
                RunFinalizedEvent(
                    ts=self._clock(),
                    test_id=run.test_id,
                    start_time=run.start_time,
                    sample_count=len(run.samples),
                    persisted=persisted,
                    filename=run.filename,
                )
            )
        finally:
            # save() at start is always paired with exactly one restore().
            self._test = None
            self._system_state.restore()

            if self._exit_requested:
                self._event_bus.emit(ShutdownReadyEvent(ts=self._clock()))
                if self._on_shutdown_ready is not None:
                    self._on_shutdown_ready()

    def _persist(self, run: TestRun) -> bool:
        try:
            result = self._writer.write(run)
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Can't write test run to disk", extra={"test_id": run.test_id})
            return False
        if not result.ok:
            LOGGER.warning(
                "Can't write test run to disk: %s",
                result.error,
                extra={"test_id": run.test_id},
            )
        return result.ok

    def _register(self, run: TestRun) -> None:
        for run_log in self._run_logs:
            try:
                run_log.register(run)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception(
                    "Run log registration failed",
                    extra={"run_log": type(run_log).__name__},
                )

    def _set_phase(self, next_phase: Phase) -> None:
        prev_phase = self._phase
        if not is_valid_transition(prev_phase, next_phase):
            LOGGER.warning(
                "Unexpected phase transition %s -> %s",
                prev_phase.value,
                next_phase.value,
            )
        self._phase = next_phase
        self._event_bus.emit(
            PhaseChangedEvent(
                ts=self._clock(),
                test_id=self._test.id if self._test is not None else None,
                prev_phase=prev_phase,
                next_phase=next_phase,
            )
        )

    def _require_run(self) -> TestRun:
        if self._run is None:
            raise RuntimeError(f"No active test run in phase {self._phase.value}")
        return self._run

    def _require_test(self) -> BatteryTest:
        if self._test is None:
            raise RuntimeError(f"No active battery test in phase {self._phase.value}")
        return self._test
