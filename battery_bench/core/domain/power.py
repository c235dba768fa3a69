"""Power telemetry models and derived statistics.

PowerState is the schema for a single telemetry snapshot as produced by the
telemetry source and as stored in persisted runs. PowerStatistics is derived
data only: it is recomputed from a (baseline, current) pair and never stored.

Unavailable readings are represented as ``None`` everywhere. A missing value
must never be reported as zero.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

SECONDS_PER_HOUR: float = 3600.0


class PowerState(BaseModel):
    online: bool = Field(..., description="True while external power is connected.")

    energy_now: float | None = Field(default=None, ge=0, description="Remaining energy in Wh.")
    energy_full: float | None = Field(default=None, ge=0, description="Last full-charge energy in Wh.")
    energy_full_design: float | None = Field(default=None, ge=0, description="Design capacity in Wh.")

    time: float = Field(..., ge=0, description="Sample time in seconds since the Unix epoch.")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def percentage(self) -> float | None:
        """Charge level relative to the last full charge, or None."""
        return _percentage(self.energy_now, self.energy_full)

    @property
    def percentage_design(self) -> float | None:
        """Charge level relative to the design capacity, or None."""
        return _percentage(self.energy_now, self.energy_full_design)


def _percentage(energy: float | None, capacity: float | None) -> float | None:
    if energy is None or capacity is None or capacity <= 0:
        return None
    return 100.0 * energy / capacity


@dataclass(frozen=True, slots=True)
class PowerStatistics:
    """Power draw and life estimates derived from two snapshots.

    - power: average discharge rate in W since the baseline
    - battery_life: hours left at that rate
    - battery_life_design: hours left had the battery its design capacity
    """

    power: float | None = None
    battery_life: float | None = None
    battery_life_design: float | None = None


def compute_statistics(baseline: PowerState, current: PowerState) -> PowerStatistics:
    """Compute statistics over the interval ``baseline -> current``.

    ``power`` is unavailable when either energy reading is missing or no
    time has elapsed. Life estimates additionally require a positive
    discharge rate; a charging or idle battery has no projected life.
    """
    hours_elapsed = (current.time - baseline.time) / SECONDS_PER_HOUR

    if baseline.energy_now is None or current.energy_now is None or hours_elapsed <= 0:
        return PowerStatistics()

    power = (baseline.energy_now - current.energy_now) / hours_elapsed
    if power <= 0:
        return PowerStatistics(power=power)

    battery_life = current.energy_now / power

    battery_life_design: float | None = None
    fraction = current.percentage
    if fraction is not None and current.energy_full_design is not None:
        battery_life_design = (fraction / 100.0) * current.energy_full_design / power

    return PowerStatistics(
        power=power,
        battery_life=battery_life,
        battery_life_design=battery_life_design,
    )
