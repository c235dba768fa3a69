from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import mlflow

from battery_bench.core.domain.duration import describe_duration
from battery_bench.core.domain.power import compute_statistics
from battery_bench.storage.run_store import run_file_name

if TYPE_CHECKING:
    from battery_bench.core.domain.run import TestRun

LOGGER = logging.getLogger(__name__)

DEFAULT_EXPERIMENT = "battery-bench"


class MlflowRunLogger:
    """Logs finalized test runs to MLflow (RunLog implementation).

    Tracking is configured via environment variables:
    - MLFLOW_TRACKING_URI: HTTP(S) address of the MLflow tracking server.
      Example: http://mlflow.lab.internal:5000
    - BATTERY_BENCH_MLFLOW_EXPERIMENT: experiment name (default "battery-bench").

    Without a tracking URI the logger is disabled. Logging is best-effort;
    the orchestrator catches and logs any exception raised here.
    """

    def __init__(self) -> None:
        self._tracking_uri = os.environ.get("MLFLOW_TRACKING_URI")
        self._experiment = os.environ.get(
            "BATTERY_BENCH_MLFLOW_EXPERIMENT", DEFAULT_EXPERIMENT
        )
        if self._tracking_uri:
            mlflow.set_tracking_uri(self._tracking_uri)

    def is_enabled(self) -> bool:
        return bool(self._tracking_uri)

    def register(self, run: TestRun) -> None:
        if not self.is_enabled():
            return

        start_state = run.start_state
        last_state = run.last_state
        if start_state is None or last_state is None:
            return

        statistics = compute_statistics(start_state, last_state)
        run_name = run_file_name(run.start_time, run.test_id).removesuffix(".json")

        mlflow.set_experiment(self._experiment)

        with mlflow.start_run(run_name=run_name):
            # Parameters (stable, comparable)
            mlflow.log_param("test_id", run.test_id)
            mlflow.log_param("duration", describe_duration(run.duration))
            mlflow.log_param("screen_brightness", run.screen_brightness)

            # Metrics; unavailable values are omitted rather than logged as 0
            mlflow.log_metric("elapsed_seconds", run.elapsed_seconds())
            mlflow.log_metric("sample_count", len(run.samples))
            if statistics.power is not None:
                mlflow.log_metric("power_w", statistics.power)
            if statistics.battery_life is not None:
                mlflow.log_metric("battery_life_hours", statistics.battery_life)
            if statistics.battery_life_design is not None:
                mlflow.log_metric("battery_life_design_hours", statistics.battery_life_design)

            # Tags (UI / filtering)
            mlflow.set_tag("test_name", run.name)
            if run.filename is not None:
                mlflow.set_tag("log_file", run.filename)

        LOGGER.info(
            "MLflow test run log submitted",
            extra={"experiment": self._experiment, "run_name": run_name},
        )
