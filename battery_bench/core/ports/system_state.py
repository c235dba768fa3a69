from __future__ import annotations

from typing import Protocol


class SystemState(Protocol):
    """Save/restore boundary for session settings altered during a run.

    save() and set_brightness() bracket the start of a run, restore() its
    finalization; each is called exactly once per run.
    """

    def save(self) -> None:
        """Remember the current settings."""

    def restore(self) -> None:
        """Reapply the settings captured by save()."""

    def set_brightness(self, screen: int, keyboard: int) -> None:
        """Apply screen and keyboard backlight levels in percent."""
