"""
Orchestrator phase definitions.

This module defines the closed set of orchestrator phases, the transitions
allowed between them, and the control-availability rules derived from the
current phase. It is passive: validation helpers never raise.
"""

from __future__ import annotations

from enum import Enum
from typing import assert_never


class Phase(str, Enum):
    STOPPED = "stopped"
    PROLOGUE = "prologue"
    WAITING = "waiting"
    RUNNING = "running"
    STOPPING = "stopping"
    EPILOGUE = "epilogue"


# Allowed phase transitions.
#
# Key   : current phase
# Value : phases reachable from it in a single step
#
# Notes:
# - WAITING and RUNNING may finalize directly when the test has no epilogue.
# - STOPPED is the only phase from which a new run may begin.
PHASE_ALLOWED_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.STOPPED: frozenset(
        {
            Phase.PROLOGUE,
            Phase.WAITING,
        }
    ),

    Phase.PROLOGUE: frozenset({Phase.WAITING}),

    Phase.WAITING: frozenset(
        {
            Phase.RUNNING,
            Phase.EPILOGUE,
            Phase.STOPPED,
        }
    ),

    Phase.RUNNING: frozenset(
        {
            Phase.STOPPING,
            Phase.EPILOGUE,
            Phase.STOPPED,
        }
    ),

    Phase.STOPPING: frozenset(
        {
            Phase.EPILOGUE,
            Phase.STOPPED,
        }
    ),

    Phase.EPILOGUE: frozenset({Phase.STOPPED}),
}


def is_valid_transition(prev_phase: Phase, next_phase: Phase) -> bool:
    """Return True if the transition prev_phase -> next_phase is allowed."""
    return next_phase in PHASE_ALLOWED_TRANSITIONS.get(prev_phase, frozenset())


def can_start(phase: Phase, *, stop_requested: bool, player_ready: bool) -> bool:
    """Availability of the start/stop control.

    While a run is in progress the same control acts as "stop", so it stays
    available until a stop has been requested.
    """
    if phase is Phase.STOPPED:
        return player_ready
    if phase is Phase.PROLOGUE or phase is Phase.WAITING or phase is Phase.RUNNING:
        return not stop_requested
    if phase is Phase.STOPPING or phase is Phase.EPILOGUE:
        return False
    assert_never(phase)


def can_configure(phase: Phase) -> bool:
    """Test selection, duration and brightness can only change when idle."""
    if phase is Phase.STOPPED:
        return True
    if (
        phase is Phase.PROLOGUE
        or phase is Phase.WAITING
        or phase is Phase.RUNNING
        or phase is Phase.STOPPING
        or phase is Phase.EPILOGUE
    ):
        return False
    assert_never(phase)


def is_stoppable(phase: Phase) -> bool:
    """Stop is meaningful only while a run may still be interrupted."""
    return phase in (Phase.PROLOGUE, Phase.WAITING, Phase.RUNNING)
