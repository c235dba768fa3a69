"""Persistence boundary for finalized test runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from battery_bench.core.domain.run import TestRun


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of a persistence attempt.

    Failures are reported here instead of raised: the orchestrator keeps the
    in-memory run regardless of the write outcome.
    """

    ok: bool
    path: str | None = None
    error: str | None = None


class RunWriter(Protocol):
    def write(self, run: TestRun) -> WriteResult:
        """Persist a finalized run.

        Only ``run.filename`` may be updated; the samples are read-only.
        """
