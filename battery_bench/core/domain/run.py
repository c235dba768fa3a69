"""Test run record.

A TestRun is the ordered sample history of one benchmark execution. It is
owned by the orchestrator while active; once finalized it is handed to the
persistence and run-log collaborators, which must treat it as read-only.
"""

# pylint: disable=too-many-instance-attributes,too-many-arguments
from __future__ import annotations

from typing import Iterable

from battery_bench.core.domain.duration import PercentDuration, TimeDuration
from battery_bench.core.domain.errors import TestRunError
from battery_bench.core.domain.power import PowerState


class TestRun:
    """Append-only sample history plus the stop policy fixed at creation.

    Invariants:
    - samples are non-decreasing in time
    - samples[0] is the baseline for every statistic
    - a run is non-trivial once a sample other than the baseline was taken
    """

    __test__ = False

    def __init__(
        self,
        *,
        test_id: str,
        name: str,
        duration: TimeDuration | PercentDuration,
        screen_brightness: int = 0,
        start_time: int = 0,
        samples: Iterable[PowerState] = (),
        filename: str | None = None,
    ) -> None:
        self.test_id = test_id
        self.name = name
        self.duration = duration
        self.screen_brightness = screen_brightness
        self.start_time = start_time

        # Set once the run has been written to or loaded from disk.
        self.filename = filename

        self._samples: list[PowerState] = []
        for sample in samples:
            self.add(sample)

    @property
    def samples(self) -> tuple[PowerState, ...]:
        return tuple(self._samples)

    @property
    def start_state(self) -> PowerState | None:
        """Baseline sample, or None before measurement started."""
        return self._samples[0] if self._samples else None

    @property
    def last_state(self) -> PowerState | None:
        return self._samples[-1] if self._samples else None

    @property
    def is_nontrivial(self) -> bool:
        """True if the last sample is not the baseline sample itself."""
        return len(self._samples) > 1

    def set_start_time(self, start_time: int) -> None:
        self.start_time = start_time

    def add(self, sample: PowerState) -> None:
        last = self.last_state
        if last is not None and sample.time < last.time:
            raise TestRunError(
                f"Sample at t={sample.time} precedes last sample at t={last.time}"
            )
        self._samples.append(sample)

    def elapsed_seconds(self) -> float:
        start = self.start_state
        last = self.last_state
        if start is None or last is None:
            return 0.0
        return last.time - start.time

    def is_done(self) -> bool:
        """Evaluate the duration policy against the latest sample.

        Under a percent policy the run only completes when the charge level
        is known. A battery that stops reporting energy readings keeps the
        run going indefinitely.
        """
        last = self.last_state
        if last is None:
            return False

        if isinstance(self.duration, TimeDuration):
            return self.elapsed_seconds() >= self.duration.seconds

        percentage = last.percentage
        if percentage is None:
            return False
        return percentage <= self.duration.threshold

    def __repr__(self) -> str:
        return (
            f"TestRun(test_id={self.test_id!r}, start_time={self.start_time}, "
            f"samples={len(self._samples)})"
        )
