"""
Semantic test: stop() in every phase.

Invariant:
- PROLOGUE: phase unchanged, stop deferred until the prologue finishes
- WAITING: straight to epilogue handling (an empty run)
- RUNNING: playback stop requested, phase STOPPING until finished()
- STOPPED / STOPPING / EPILOGUE: no-op
"""

from __future__ import annotations

from battery_bench.core.domain.phase import Phase


def test_stop_while_waiting_without_epilogue_finalizes_empty_run(harness) -> None:
    harness.start("idle")

    harness.orchestrator.stop()

    assert harness.orchestrator.phase is Phase.STOPPED
    assert harness.writer.written == []
    assert harness.run_log.registered == []
    assert harness.system_state.calls[-1] == ("restore",)
    assert harness.orchestrator.test is None


def test_stop_while_waiting_with_epilogue_plays_epilogue(harness) -> None:
    harness.start("office")
    harness.finished()
    assert harness.orchestrator.phase is Phase.WAITING

    harness.orchestrator.stop()

    assert harness.orchestrator.phase is Phase.EPILOGUE
    assert harness.player.played[-1] == "office.epilogue"

    harness.finished()
    assert harness.orchestrator.phase is Phase.STOPPED


def test_stop_while_running_requests_player_stop(harness) -> None:
    harness.start("idle")
    harness.sample(time=0.0)
    assert harness.orchestrator.phase is Phase.RUNNING

    harness.orchestrator.stop()

    assert harness.player.stop_calls == 1
    assert harness.orchestrator.phase is Phase.STOPPING

    harness.finished()
    assert harness.orchestrator.phase is Phase.STOPPED


def test_stop_during_stopping_and_epilogue_is_noop(harness) -> None:
    harness.start("office")
    harness.finished()
    harness.sample(time=0.0)
    harness.orchestrator.stop()
    assert harness.orchestrator.phase is Phase.STOPPING

    harness.orchestrator.stop()
    assert harness.orchestrator.phase is Phase.STOPPING
    assert harness.player.stop_calls == 1

    harness.finished()
    assert harness.orchestrator.phase is Phase.EPILOGUE

    harness.orchestrator.stop()
    assert harness.orchestrator.phase is Phase.EPILOGUE
    assert harness.player.stop_calls == 1


def test_repeated_stop_in_stopped_is_noop(harness) -> None:
    for _ in range(3):
        harness.orchestrator.stop()

    assert harness.orchestrator.phase is Phase.STOPPED
    assert harness.orchestrator.stop_requested is False
    assert harness.player.stop_calls == 0
    assert harness.system_state.calls == []
    assert harness.sink.events == []
