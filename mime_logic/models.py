from __future__ import annotations

from mime_logic.domain.models import (
    NOT_XDG_PRIORITY,
    TERMINAL_EMULATOR_CATEGORY,
    ApplicationEntry,
    DesktopAction,
    DesktopEntry,
    DesktopFile,
)

__all__ = [
    "NOT_XDG_PRIORITY",
    "TERMINAL_EMULATOR_CATEGORY",
    "ApplicationEntry",
    "DesktopAction",
    "DesktopEntry",
    "DesktopFile",
]
