"""Run history and per-run summaries.

RunHistory is the in-memory counterpart of the log folder: it receives every
finalized run (as a RunLog) plus the runs loaded at startup, and renders the
rows shown in a log listing.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Iterable, List

from battery_bench.core.domain.duration import describe_duration
from battery_bench.core.domain.power import compute_statistics
from battery_bench.orchestrator.status import format_duration_hms

if TYPE_CHECKING:
    from battery_bench.core.domain.run import TestRun

SECONDS_PER_HOUR = 3600.0


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RunHistoryEntry:
    run: TestRun
    name: str
    duration: str
    date: str


@dataclass(frozen=True, slots=True)
class RunSummary:
    name: str
    duration: str
    screen_brightness: int
    sample_count: int

    # Only populated for non-trivial runs.
    power: float | None = None
    energy_full: float | None = None
    energy_full_design: float | None = None
    battery_life: float | None = None
    battery_life_design: float | None = None


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_run_date(start_time: int, now: datetime | None = None) -> str:
    """Short local date for a run, coarser the further it lies in the past."""
    start = datetime.fromtimestamp(start_time)
    now = now if now is not None else datetime.now()

    difference = now - start
    if difference < timedelta(days=1):
        return start.strftime("%H:%M")
    if difference < timedelta(days=7) and now.weekday() != start.weekday():
        return start.strftime("%a %H:%M")
    if now.year == start.year:
        return start.strftime("%m-%d %H:%M")
    return start.strftime("%Y-%m-%d %H:%M")


def summarize_run(run: TestRun) -> RunSummary:
    summary = RunSummary(
        name=run.name,
        duration=describe_duration(run.duration),
        screen_brightness=run.screen_brightness,
        sample_count=len(run.samples),
    )

    start_state = run.start_state
    last_state = run.last_state
    if not run.is_nontrivial or start_state is None or last_state is None:
        return summary

    statistics = compute_statistics(start_state, last_state)
    return RunSummary(
        name=summary.name,
        duration=summary.duration,
        screen_brightness=summary.screen_brightness,
        sample_count=summary.sample_count,
        power=statistics.power,
        energy_full=last_state.energy_full,
        energy_full_design=last_state.energy_full_design,
        battery_life=statistics.battery_life,
        battery_life_design=statistics.battery_life_design,
    )


def format_run_summary(summary: RunSummary) -> List[str]:
    """Render a summary as ``label: value`` lines, omitting unavailable values."""
    lines = [
        f"Test: {summary.name}",
        f"Duration: {summary.duration}",
        f"Backlight: {summary.screen_brightness}%",
        f"Samples: {summary.sample_count}",
    ]
    if summary.power is not None:
        lines.append(f"Average power: {summary.power:.1f}W")
    if summary.energy_full is not None:
        lines.append(f"Energy (full): {summary.energy_full:.1f}WH")
    if summary.energy_full_design is not None:
        lines.append(f"Energy (full, design): {summary.energy_full_design:.1f}WH")
    if summary.battery_life is not None:
        lines.append(
            f"Estimated life: {format_duration_hms(summary.battery_life * SECONDS_PER_HOUR)}"
        )
    if summary.battery_life_design is not None:
        lines.append(
            "Estimated life (design): "
            f"{format_duration_hms(summary.battery_life_design * SECONDS_PER_HOUR)}"
        )
    return lines


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class RunHistory:
    """Runs ordered by start time; implements the RunLog protocol."""

    def __init__(
        self,
        runs: Iterable[TestRun] = (),
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._now = now
        self._runs: list[TestRun] = []
        for run in runs:
            self.register(run)

    def register(self, run: TestRun) -> None:
        keys = [existing.start_time for existing in self._runs]
        index = bisect.bisect_right(keys, run.start_time)
        self._runs.insert(index, run)

    def remove(self, run: TestRun) -> bool:
        for index, existing in enumerate(self._runs):
            if existing is run:
                del self._runs[index]
                return True
        return False

    @property
    def runs(self) -> tuple[TestRun, ...]:
        return tuple(self._runs)

    def __len__(self) -> int:
        return len(self._runs)

    def entries(self) -> list[RunHistoryEntry]:
        now = self._now()
        return [
            RunHistoryEntry(
                run=run,
                name=run.name,
                duration=describe_duration(run.duration),
                date=format_run_date(run.start_time, now=now),
            )
            for run in self._runs
        ]
