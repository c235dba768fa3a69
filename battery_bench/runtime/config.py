"""Bench configuration model and loader."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from battery_bench.core.domain.duration import PercentDuration, TimeDuration, parse_duration_choice
from battery_bench.core.domain.errors import ConfigError

PACKAGE_NAME = "gnome-battery-bench"


def default_data_dir() -> Path:
    """``$XDG_DATA_HOME/gnome-battery-bench``, falling back to ~/.local/share."""
    base = os.environ.get("XDG_DATA_HOME")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / PACKAGE_NAME


class BenchConfig(BaseModel):
    """Structured bench configuration.

    JSON example:
        {
          "log_folder": "/var/lib/battery-bench/logs",
          "tests_dir": "/usr/share/battery-bench/tests",
          "default_test": "idle",
          "default_duration": "minutes-10",
          "default_brightness": 50
        }
    """

    log_folder: Path = Field(default_factory=lambda: default_data_dir() / "logs")
    tests_dir: Path = Field(default_factory=lambda: default_data_dir() / "tests")

    default_test: str = Field(default="idle", min_length=1)
    default_duration: str = Field(default="minutes-10", min_length=1)
    default_brightness: int = Field(default=50, ge=0, le=100)

    # JSON-lines recorder for orchestrator domain events (disabled if unset).
    event_log_path: Path | None = None

    metrics_job: str = Field(default="battery_bench", min_length=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("default_duration")
    @classmethod
    def _validate_duration_choice(cls, value: str) -> str:
        try:
            parse_duration_choice(value)
        except ConfigError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @classmethod
    def from_json_obj(cls, obj: dict[str, Any]) -> BenchConfig:
        return cls.model_validate(obj)

    def duration_policy(self) -> TimeDuration | PercentDuration:
        return parse_duration_choice(self.default_duration)


def load_bench_config(path: str | Path) -> BenchConfig:
    """Load a BenchConfig from a TOML or JSON file."""
    path_obj = Path(path)
    if not path_obj.exists():
        raise ConfigError(f"Config path does not exist: {path_obj}")

    suffix = path_obj.suffix.lower()
    try:
        if suffix == ".toml":
            with path_obj.open("rb") as handle:
                raw = tomllib.load(handle)
        elif suffix == ".json":
            with path_obj.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        else:
            raise ConfigError(f"Unsupported config format: {path_obj.suffix}")
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot parse config {path_obj}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be an object: {path_obj}")

    try:
        return BenchConfig.from_json_obj(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path_obj}: {exc}") from exc
