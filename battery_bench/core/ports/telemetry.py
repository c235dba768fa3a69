"""Telemetry source protocol.

This module defines the boundary to the hardware power reader. Concrete
implementations (sysfs, UPower, replayed recordings) adapt their platform to
this protocol; the orchestrator never reads hardware itself.
"""

from __future__ import annotations

from typing import Callable, Protocol

from battery_bench.core.domain.power import PowerState


class TelemetrySource(Protocol):
    """Producer of PowerState snapshots.

    The source notifies listeners whenever a new sample is available. The
    notification frequency is source-defined.
    """

    def get_state(self) -> PowerState:
        """Return a fresh snapshot on demand."""

    def connect_changed(self, callback: Callable[[PowerState], None]) -> None:
        """Register a listener invoked with every new snapshot."""
