"""Exception hierarchy shared across the package."""

from __future__ import annotations


class BatteryBenchError(RuntimeError):
    """Base class for all battery_bench errors."""


class ConfigError(BatteryBenchError):
    """Raised when configuration loading or parsing fails."""


class TestRunError(BatteryBenchError):
    """Raised when a TestRun invariant would be violated."""

    __test__ = False


class UnknownBatteryTestError(BatteryBenchError):
    """Raised when a battery test id is not present in the registry."""


class RunStoreError(BatteryBenchError):
    """Raised when a persisted test run cannot be read."""
