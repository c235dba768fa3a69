"""
Semantic test: time-based completion.

Invariant:
A run with a time policy of S seconds is done once the latest sample is at
least S seconds after the baseline. Completion is only evaluated when the
loop finishes, so a done run keeps RUNNING until the next finished().
"""

from __future__ import annotations

from battery_bench.core.domain.duration import TimeDuration
from battery_bench.core.domain.phase import Phase


def test_not_done_before_duration_replays_loop(harness) -> None:
    harness.start("idle", duration=TimeDuration(seconds=300))
    harness.sample(time=0.0)
    harness.sample(time=299.0, energy_now=39.0)

    assert harness.orchestrator.run.is_done() is False

    harness.finished()

    assert harness.orchestrator.phase is Phase.RUNNING
    assert harness.player.played == ["idle.loop", "idle.loop"]


def test_done_at_duration_leaves_running_on_next_finished(harness) -> None:
    harness.start("idle", duration=TimeDuration(seconds=300))
    harness.sample(time=0.0)
    harness.sample(time=300.0, energy_now=39.0)

    assert harness.orchestrator.run.is_done() is True
    assert harness.orchestrator.phase is Phase.RUNNING

    harness.finished()

    assert harness.orchestrator.phase is Phase.STOPPED
    assert harness.player.played == ["idle.loop"]


def test_elapsed_is_measured_from_baseline_not_wall_clock(harness) -> None:
    harness.start("idle", duration=TimeDuration(seconds=60))
    harness.clock.now += 10_000
    harness.sample(time=500.0)
    harness.sample(time=530.0, energy_now=39.9)

    assert harness.orchestrator.run.elapsed_seconds() == 30.0
    assert harness.orchestrator.run.is_done() is False
