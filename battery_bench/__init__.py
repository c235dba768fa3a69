"""Public API for the battery_bench package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from battery_bench.core.domain.battery_test import BatteryTest
from battery_bench.core.domain.duration import (
    DurationPolicy,
    PercentDuration,
    TimeDuration,
    parse_duration_choice,
)
from battery_bench.core.domain.errors import (
    BatteryBenchError,
    ConfigError,
    RunStoreError,
    TestRunError,
    UnknownBatteryTestError,
)
from battery_bench.core.domain.phase import Phase
from battery_bench.core.domain.power import PowerState, PowerStatistics, compute_statistics
from battery_bench.core.domain.run import TestRun

# ----------------------------------------------------------------------
# Orchestrator API (used by front ends)
# ----------------------------------------------------------------------
from battery_bench.orchestrator.dispatcher import EventDispatcher
from battery_bench.orchestrator.orchestrator import TestRunOrchestrator

# ----------------------------------------------------------------------
# Storage / Config API
# ----------------------------------------------------------------------
from battery_bench.runtime.config import BenchConfig, load_bench_config
from battery_bench.storage.history import RunHistory
from battery_bench.storage.run_store import JsonRunStore

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Orchestrator
    "TestRunOrchestrator",
    "EventDispatcher",
    "Phase",

    # Domain
    "PowerState",
    "PowerStatistics",
    "compute_statistics",
    "TestRun",
    "BatteryTest",
    "DurationPolicy",
    "TimeDuration",
    "PercentDuration",
    "parse_duration_choice",

    # Storage / config
    "JsonRunStore",
    "RunHistory",
    "BenchConfig",
    "load_bench_config",

    # Errors
    "BatteryBenchError",
    "ConfigError",
    "RunStoreError",
    "TestRunError",
    "UnknownBatteryTestError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("battery-bench")
except PackageNotFoundError:
    __version__ = "0.0.0"
