"""Workload player protocol.

The player injects recorded input events into the session. ``finished`` is
the only signal that advances a run through its prologue, loop, stop and
epilogue steps.
"""

from __future__ import annotations

from typing import Callable, Protocol


class EventPlayer(Protocol):
    def is_ready(self) -> bool:
        """Return True once the player can accept playback requests."""

    def play_file(self, path: str) -> None:
        """Start replaying the given workload script."""

    def stop(self) -> None:
        """Request that the current playback stops. Completion is signalled via finished."""

    def connect_ready(self, callback: Callable[[], None]) -> None:
        """Register a listener for the player becoming ready."""

    def connect_finished(self, callback: Callable[[], None]) -> None:
        """Register a listener for playback completion."""
