from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

from battery_bench.core.domain.power import compute_statistics

if TYPE_CHECKING:
    from battery_bench.core.domain.run import TestRun

LOGGER = logging.getLogger(__name__)


class PrometheusRunReporter:
    """Pushes per-run gauges to a Prometheus Pushgateway (RunLog implementation).

    Expected environment:
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway.
      Example: http://pushgateway.lab.internal:9091

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object used as grouping key,
      e.g. {"host": "thinkpad-x1"}. The test id is always added.

    Unavailable statistics are not pushed.
    """

    def __init__(self, *, job: str = "battery_bench") -> None:
        self._job = job
        self._pushgateway_url = os.environ.get("PROMETHEUS_PUSHGATEWAY_URL")
        self._grouping_key = self._load_grouping_key()

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @staticmethod
    def _load_grouping_key() -> dict[str, str]:
        raw = os.environ.get("PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON")
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning(
                "Invalid PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON; ignoring"
            )
            return {}

        if not isinstance(data, dict):
            return {}

        return {
            key: value
            for key, value in data.items()
            if isinstance(key, str) and isinstance(value, str)
        }

    def register(self, run: TestRun) -> None:
        if not self._pushgateway_url:
            return

        start_state = run.start_state
        last_state = run.last_state
        if start_state is None or last_state is None:
            return

        statistics = compute_statistics(start_state, last_state)
        values = {
            "battery_bench_elapsed_seconds": run.elapsed_seconds(),
            "battery_bench_power_watts": statistics.power,
            "battery_bench_battery_life_hours": statistics.battery_life,
            "battery_bench_battery_life_design_hours": statistics.battery_life_design,
        }

        # Fresh registry per push: gauge names must be unique per registry.
        registry = CollectorRegistry()
        for name, value in values.items():
            if value is None:
                continue
            gauge = Gauge(
                name,
                documentation=name,
                labelnames=["test_id"],
                registry=registry,
            )
            gauge.labels(test_id=run.test_id).set(value)

        grouping_key = {**self._grouping_key, "test_id": run.test_id}
        push_to_gateway(
            gateway=self._pushgateway_url,
            job=self._job,
            registry=registry,
            grouping_key=grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": self._job, "grouping_key": grouping_key},
        )
