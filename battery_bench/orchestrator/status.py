"""Human-readable status strings derived from orchestrator state."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from battery_bench.core.domain.phase import Phase

if TYPE_CHECKING:
    from battery_bench.core.domain.power import PowerState
    from battery_bench.core.domain.run import TestRun

APP_TITLE = "GNOME Battery Bench"


def split_duration(seconds: float) -> tuple[int, int, int]:
    """Split a duration into (hours, minutes, seconds), truncating fractions."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return hours, minutes, secs


def format_duration_hms(seconds: float) -> str:
    hours, minutes, secs = split_duration(seconds)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def status_title(phase: Phase, state: PowerState, run: TestRun | None) -> str:
    """Window title for the current phase.

    ``state`` is the latest telemetry snapshot; while RUNNING the elapsed time
    is measured from the run's baseline sample to it.
    """
    if phase is Phase.STOPPED:
        return APP_TITLE
    if phase is Phase.PROLOGUE:
        return f"{APP_TITLE} - setting up"
    if phase is Phase.WAITING:
        if state.online:
            return f"{APP_TITLE} - disconnect from AC to start"
        return f"{APP_TITLE} - waiting for data"
    if phase is Phase.RUNNING:
        start_state = run.start_state if run is not None else None
        elapsed = state.time - start_state.time if start_state is not None else 0.0
        return f"{APP_TITLE} - running ({format_duration_hms(max(elapsed, 0.0))})"
    if phase is Phase.STOPPING:
        return f"{APP_TITLE} - stopping"
    if phase is Phase.EPILOGUE:
        return f"{APP_TITLE} - cleaning up"
    assert_never(phase)
