from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from battery_bench.core.domain.run import TestRun


class RunLog(Protocol):
    """Consumer of finalized runs (history view, experiment tracking, metrics).

    Invoked alongside persistence, only for non-trivial runs.
    """

    def register(self, run: TestRun) -> None:
        """Record a finalized run. The run must be treated as read-only."""
