from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import re
from typing import Final

from mime_logic.errors import RegexHandlerError
from mime_logic.models import ApplicationEntry
from openit.platform.paths import XdgDirs

REGEX_HANDLERS_FILE_NAME: Final[str] = "regex_handlers.json"

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegexHandler:
    exec: str
    patterns: tuple[str, ...]
    compiled: tuple[re.Pattern[str], ...]
    terminal: bool = False
    priority: int = 0
    notes: str | None = None

    def matches(self, candidate: str) -> bool:
        return any(regex.search(candidate) for regex in self.compiled)

    def to_application(self) -> ApplicationEntry:
        name = self.notes or f"Regex handler (prio {self.priority})"
        joined = ", ".join(self.patterns)
        comment = f"Regex handler -> {self.exec}"
        if joined:
            comment = f"{comment} [{joined}]"
        return ApplicationEntry(
            name=name,
            exec=self.exec,
            desktop_file=Path(f"regex-handler-{self.priority}.desktop"),
            comment=comment,
            xdg_priority=self.priority,
            requires_terminal=self.terminal,
        )


def _default_handlers() -> list[RegexHandler]:
    return []


@dataclass(slots=True)
class RegexHandlerStore:
    handlers: list[RegexHandler] = field(default_factory=_default_handlers)

    @staticmethod
    def default_path(dirs: XdgDirs) -> Path:
        return dirs.app_config_dir / REGEX_HANDLERS_FILE_NAME

    @classmethod
    def load(cls, path: Path) -> "RegexHandlerStore":
        if not path.exists():
            return cls()
        try:
            raw_data = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise RegexHandlerError(f"Failed to read regex handler file at {path}: {exc}") from exc
        try:
            payload: object = json.loads(raw_data)
        except json.JSONDecodeError as exc:
            raise RegexHandlerError(
                f"Failed to parse regex handler file at {path}: {exc}"
            ) from exc
        return cls.from_payload(payload, source=path)

    @classmethod
    def from_payload(cls, payload: object, *, source: Path | None = None) -> "RegexHandlerStore":
        where = f" in {source}" if source is not None else ""
        if not isinstance(payload, dict):
            raise RegexHandlerError(f"Regex handler document{where} must be an object")
        raw_handlers = payload.get("handlers", [])
        if not isinstance(raw_handlers, list):
            raise RegexHandlerError(f"`handlers`{where} must be a list")
        handlers = [_build_handler(item, where) for item in raw_handlers]
        # Stable sort keeps file order among equal priorities.
        handlers.sort(key=lambda handler: handler.priority, reverse=True)
        _LOGGER.debug("Loaded %d regex handler(s)", len(handlers))
        return cls(handlers=handlers)

    def find_handler(self, candidate: str) -> RegexHandler | None:
        for handler in self.handlers:
            if handler.matches(candidate):
                return handler
        return None

    def is_empty(self) -> bool:
        return not self.handlers

    def __len__(self) -> int:
        return len(self.handlers)


def _build_handler(item: object, where: str) -> RegexHandler:
    if not isinstance(item, dict):
        raise RegexHandlerError(f"Regex handler entry{where} must be an object")
    exec_line = item.get("exec")
    if not isinstance(exec_line, str) or not exec_line.strip():
        raise RegexHandlerError(f"Regex handler entry{where} is missing `exec`")
    raw_patterns = item.get("regexes", [])
    if not isinstance(raw_patterns, list) or not all(
        isinstance(pattern, str) for pattern in raw_patterns
    ):
        raise RegexHandlerError(f"`regexes` for handler `{exec_line}`{where} must be strings")
    compiled: list[re.Pattern[str]] = []
    for pattern in raw_patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise RegexHandlerError(
                f"Failed to compile regex `{pattern}` for handler `{exec_line}`: {exc}"
            ) from exc
    priority = item.get("priority", 0)
    if not isinstance(priority, int) or isinstance(priority, bool):
        raise RegexHandlerError(f"`priority` for handler `{exec_line}`{where} must be an integer")
    notes = item.get("notes")
    return RegexHandler(
        exec=exec_line,
        patterns=tuple(raw_patterns),
        compiled=tuple(compiled),
        terminal=item.get("terminal") is True,
        priority=priority,
        notes=notes if isinstance(notes, str) and notes.strip() else None,
    )
