"""JSON persistence for finalized test runs.

One run per file, named from the run's UTC start time and test id so that
file names sort chronologically. The file layout is described by
``core/schemas/test_run.schema.json``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from battery_bench.core.domain.duration import DurationPolicy
from battery_bench.core.domain.errors import RunStoreError, TestRunError
from battery_bench.core.domain.power import PowerState
from battery_bench.core.domain.run import TestRun
from battery_bench.core.ports.run_writer import WriteResult

LOGGER = logging.getLogger(__name__)

RUN_FILE_TIME_FORMAT = "%Y-%m-%d-%H:%M:%S"
RUN_FILE_SUFFIX = ".json"


class TestRunRecord(BaseModel):
    """On-disk representation of a TestRun."""

    __test__ = False

    schema_version: Literal["1.0"] = "1.0"

    test_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    start_time: int = Field(..., ge=0)
    screen_brightness: int = Field(..., ge=0, le=100)
    duration: DurationPolicy
    samples: list[PowerState] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_run(cls, run: TestRun) -> TestRunRecord:
        return cls(
            test_id=run.test_id,
            name=run.name,
            start_time=run.start_time,
            screen_brightness=run.screen_brightness,
            duration=run.duration,
            samples=list(run.samples),
        )

    def to_run(self, filename: str | None = None) -> TestRun:
        return TestRun(
            test_id=self.test_id,
            name=self.name,
            duration=self.duration,
            screen_brightness=self.screen_brightness,
            start_time=self.start_time,
            samples=self.samples,
            filename=filename,
        )


def run_file_name(start_time: int, test_id: str) -> str:
    """Deterministic file name for a run, e.g. ``2016-03-01-12:00:00-idle.json``."""
    start = datetime.fromtimestamp(start_time, tz=timezone.utc)
    return f"{start.strftime(RUN_FILE_TIME_FORMAT)}-{test_id}{RUN_FILE_SUFFIX}"


class JsonRunStore:
    """Run writer and reader backed by a directory of JSON files."""

    def __init__(self, log_folder: str | Path) -> None:
        self._log_folder = Path(log_folder)

    @property
    def log_folder(self) -> Path:
        return self._log_folder

    def write(self, run: TestRun) -> WriteResult:
        """Write ``run`` to the log folder and record the path on the run.

        I/O failures are returned, not raised.
        """
        try:
            self._log_folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return WriteResult(ok=False, error=f"Cannot create log directory: {exc}")

        path = self._log_folder / run_file_name(run.start_time, run.test_id)
        try:
            payload = TestRunRecord.from_run(run).model_dump_json(indent=2)
        except ValidationError as exc:
            return WriteResult(ok=False, path=str(path), error=f"Invalid test run: {exc}")
        try:
            path.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            return WriteResult(ok=False, path=str(path), error=str(exc))

        run.filename = str(path)
        LOGGER.info("Test run written", extra={"path": str(path), "test_id": run.test_id})
        return WriteResult(ok=True, path=str(path))

    def read_file(self, path: str | Path) -> TestRun:
        path_obj = Path(path)
        try:
            raw = path_obj.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RunStoreError(f"Cannot read {path_obj}: {exc}") from exc

        try:
            record = TestRunRecord.model_validate_json(raw)
        except ValidationError as exc:
            raise RunStoreError(f"Malformed test run {path_obj}: {exc}") from exc

        try:
            return record.to_run(filename=str(path_obj))
        except TestRunError as exc:
            raise RunStoreError(f"Inconsistent test run {path_obj}: {exc}") from exc

    def read_all(self) -> list[TestRun]:
        """Load every run in the log folder, oldest first.

        Unreadable files are skipped with a warning.
        """
        if not self._log_folder.is_dir():
            return []

        runs: list[TestRun] = []
        try:
            paths = sorted(self._log_folder.iterdir())
        except OSError as exc:
            LOGGER.warning("Error reading logs: %s", exc)
            return runs

        for path in paths:
            if path.suffix != RUN_FILE_SUFFIX or not path.is_file():
                continue
            try:
                runs.append(self.read_file(path))
            except RunStoreError as exc:
                LOGGER.warning("Can't read test log '%s': %s", path, exc)

        runs.sort(key=lambda run: run.start_time)
        return runs

    def delete(self, run: TestRun) -> bool:
        """Remove the file backing ``run``. Returns False on failure."""
        if run.filename is None:
            LOGGER.warning("Test run has no backing file", extra={"test_id": run.test_id})
            return False
        try:
            Path(run.filename).unlink()
        except OSError as exc:
            LOGGER.warning("Failed to delete log: %s", exc)
            return False
        run.filename = None
        return True
