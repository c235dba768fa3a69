"""Duration policies deciding when a test run is complete.

A policy is fixed when the run is created. It is modelled as a pydantic
discriminated union on ``duration_type`` so persisted runs round-trip
without ambiguity.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from battery_bench.core.domain.errors import ConfigError


class TimeDuration(BaseModel):
    duration_type: Literal["time"] = "time"
    seconds: float = Field(..., gt=0, description="Measured time after the baseline sample.")

    model_config = ConfigDict(extra="forbid", frozen=True)


class PercentDuration(BaseModel):
    duration_type: Literal["percent"] = "percent"
    threshold: float = Field(..., ge=0, le=100, description="Stop at or below this charge level.")

    model_config = ConfigDict(extra="forbid", frozen=True)


DurationPolicy = Annotated[
    TimeDuration | PercentDuration,
    Field(discriminator="duration_type"),
]


# Presets offered by the desktop front end.
DURATION_CHOICES: dict[str, TimeDuration | PercentDuration] = {
    "minutes-5": TimeDuration(seconds=5 * 60),
    "minutes-10": TimeDuration(seconds=10 * 60),
    "minutes-30": TimeDuration(seconds=30 * 60),
    "until-percent-5": PercentDuration(threshold=5),
}


def parse_duration_choice(choice: str) -> TimeDuration | PercentDuration:
    """Map a preset identifier such as ``minutes-10`` to its policy."""
    try:
        return DURATION_CHOICES[choice]
    except KeyError:
        known = ", ".join(sorted(DURATION_CHOICES))
        raise ConfigError(f"Unknown duration choice {choice!r} (expected one of: {known})") from None


def describe_duration(duration: TimeDuration | PercentDuration) -> str:
    if isinstance(duration, TimeDuration):
        return f"{duration.seconds / 60:.0f} Minutes"
    return f"Until {duration.threshold:.0f}% battery"
