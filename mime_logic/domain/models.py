from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

TERMINAL_EMULATOR_CATEGORY: Final[str] = "TerminalEmulator"
NOT_XDG_PRIORITY: Final[int] = -1


@dataclass(frozen=True, slots=True)
class DesktopAction:
    name: str
    exec: str
    icon: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"name": self.name, "exec": self.exec, "icon": self.icon}

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "DesktopAction":
        return cls(
            name=_require_str(payload, "name"),
            exec=_require_str(payload, "exec"),
            icon=_optional_str(payload.get("icon")),
        )


@dataclass(frozen=True, slots=True)
class DesktopEntry:
    name: str
    exec: str
    comment: str | None = None
    icon: str | None = None
    mime_types: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()
    no_display: bool = False
    hidden: bool = False
    terminal: bool = False

    @property
    def is_terminal_emulator(self) -> bool:
        return TERMINAL_EMULATOR_CATEGORY in self.categories

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "exec": self.exec,
            "comment": self.comment,
            "icon": self.icon,
            "mime_types": list(self.mime_types),
            "categories": list(self.categories),
            "actions": list(self.actions),
            "no_display": self.no_display,
            "hidden": self.hidden,
            "terminal": self.terminal,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "DesktopEntry":
        return cls(
            name=_require_str(payload, "name"),
            exec=_require_str(payload, "exec"),
            comment=_optional_str(payload.get("comment")),
            icon=_optional_str(payload.get("icon")),
            mime_types=_str_tuple(payload.get("mime_types")),
            categories=_str_tuple(payload.get("categories")),
            actions=_str_tuple(payload.get("actions")),
            no_display=payload.get("no_display") is True,
            hidden=payload.get("hidden") is True,
            terminal=payload.get("terminal") is True,
        )


def _default_actions() -> dict[str, DesktopAction]:
    return {}


@dataclass(frozen=True, slots=True)
class DesktopFile:
    main_entry: DesktopEntry | None
    actions: dict[str, DesktopAction] = field(default_factory=_default_actions)

    def to_dict(self) -> dict[str, object]:
        return {
            "main_entry": None if self.main_entry is None else self.main_entry.to_dict(),
            "actions": {
                action_id: action.to_dict() for action_id, action in self.actions.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "DesktopFile":
        raw_main = payload.get("main_entry")
        main_entry: DesktopEntry | None = None
        if isinstance(raw_main, dict):
            main_entry = DesktopEntry.from_dict(raw_main)
        elif raw_main is not None:
            raise ValueError("main_entry must be an object or null")
        raw_actions = payload.get("actions", {})
        if not isinstance(raw_actions, dict):
            raise ValueError("actions must be an object")
        actions: dict[str, DesktopAction] = {}
        for action_id, raw_action in raw_actions.items():
            if not isinstance(action_id, str) or not isinstance(raw_action, dict):
                raise ValueError("invalid action record")
            actions[action_id] = DesktopAction.from_dict(raw_action)
        return cls(main_entry=main_entry, actions=actions)


@dataclass(frozen=True, slots=True)
class ApplicationEntry:
    name: str
    exec: str
    desktop_file: Path
    comment: str | None = None
    icon: str | None = None
    is_xdg: bool = False
    xdg_priority: int = NOT_XDG_PRIORITY
    is_default: bool = False
    action_id: str | None = None
    requires_terminal: bool = False
    is_terminal_emulator: bool = False

    @classmethod
    def from_desktop_entry(
        cls,
        entry: DesktopEntry,
        desktop_file: Path,
        *,
        priority: int = NOT_XDG_PRIORITY,
    ) -> "ApplicationEntry":
        is_xdg = priority >= 0
        return cls(
            name=entry.name,
            exec=entry.exec,
            desktop_file=desktop_file,
            comment=entry.comment,
            icon=entry.icon,
            is_xdg=is_xdg,
            xdg_priority=priority if is_xdg else NOT_XDG_PRIORITY,
            is_default=priority == 0,
            requires_terminal=entry.terminal,
            is_terminal_emulator=entry.is_terminal_emulator,
        )

    @classmethod
    def from_desktop_action(
        cls,
        entry: DesktopEntry,
        action_id: str,
        action: DesktopAction,
        desktop_file: Path,
        *,
        priority: int = NOT_XDG_PRIORITY,
    ) -> "ApplicationEntry":
        is_xdg = priority >= 0
        return cls(
            name=f"{entry.name} - {action.name}",
            exec=action.exec,
            desktop_file=desktop_file,
            comment=f"Action: {action.name}",
            icon=action.icon if action.icon is not None else entry.icon,
            is_xdg=is_xdg,
            xdg_priority=priority if is_xdg else NOT_XDG_PRIORITY,
            is_default=False,
            action_id=action_id,
            requires_terminal=entry.terminal,
            is_terminal_emulator=entry.is_terminal_emulator,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "exec": self.exec,
            "desktop_file": str(self.desktop_file),
            "comment": self.comment,
            "icon": self.icon,
            "is_xdg": self.is_xdg,
            "xdg_priority": self.xdg_priority,
            "is_default": self.is_default,
            "action_id": self.action_id,
            "requires_terminal": self.requires_terminal,
            "is_terminal_emulator": self.is_terminal_emulator,
        }


def _require_str(payload: dict[str, object], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _optional_str(value: object | None) -> str | None:
    if isinstance(value, str):
        return value
    return None


def _str_tuple(value: object | None) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))
