"""Command-line access to battery tests and recorded runs."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from battery_bench.core.domain.errors import BatteryBenchError
from battery_bench.registry.battery_tests import DirectoryTestRegistry
from battery_bench.runtime.config import BenchConfig, load_bench_config
from battery_bench.storage.history import RunHistory, format_run_summary, summarize_run
from battery_bench.storage.run_store import JsonRunStore

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_tests(config: BenchConfig) -> int:
    registry = DirectoryTestRegistry(config.tests_dir)
    tests = registry.list_all()
    if not tests:
        print(f"No battery tests found in {config.tests_dir}")
        return 0
    for test in tests:
        marker = "*" if test.id == config.default_test else " "
        print(f"{marker} {test.id}\t{test.name}")
    return 0


def _cmd_logs(config: BenchConfig) -> int:
    history = RunHistory(JsonRunStore(config.log_folder).read_all())
    if not len(history):
        print(f"No test runs recorded in {config.log_folder}")
        return 0
    for entry in history.entries():
        print(f"{entry.date}\t{entry.name}\t{entry.duration}\t{entry.run.filename}")
    return 0


def _cmd_show(config: BenchConfig, path: Path) -> int:
    run = JsonRunStore(config.log_folder).read_file(path)
    for line in format_run_summary(summarize_run(run)):
        print(line)
    return 0


def _cmd_delete(config: BenchConfig, path: Path) -> int:
    store = JsonRunStore(config.log_folder)
    run = store.read_file(path)
    if not store.delete(run):
        print(f"Failed to delete {path}", file=sys.stderr)
        return 1
    print(f"Deleted {path}")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="battery-bench",
        description="Inspect battery tests and recorded battery benchmark runs.",
    )
    parser.add_argument("--config", type=Path, help="Path to TOML/JSON bench config.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("tests", help="List available battery tests")
    subparsers.add_parser("logs", help="List recorded test runs, oldest first")

    show = subparsers.add_parser("show", help="Summarize a recorded test run")
    show.add_argument("file", type=Path, help="Path to a run JSON file.")

    delete = subparsers.add_parser("delete", help="Permanently delete a recorded test run")
    delete.add_argument("file", type=Path, help="Path to a run JSON file.")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    try:
        config = load_bench_config(args.config) if args.config else BenchConfig()

        if args.command == "tests":
            return _cmd_tests(config)
        if args.command == "logs":
            return _cmd_logs(config)
        if args.command == "show":
            return _cmd_show(config, args.file)
        if args.command == "delete":
            return _cmd_delete(config, args.file)
    except BatteryBenchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
