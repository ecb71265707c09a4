from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
import re
import shlex
import subprocess
from typing import Final

from mime_logic.errors import InvalidInputError
from mime_logic.models import ApplicationEntry
from openit import telemetry
from openit.target import LaunchTarget

TARGET_CODES: Final[frozenset[str]] = frozenset({"%f", "%F", "%u", "%U"})
DEPRECATED_CODES: Final[frozenset[str]] = frozenset({"%d", "%D", "%n", "%N", "%v", "%m"})
_FIELD_CODE_RE: Final[re.Pattern[str]] = re.compile(r"%(.)")

_LOGGER = logging.getLogger(__name__)

Spawner = Callable[[list[str]], None]


def prepare_command(
    exec_line: str,
    target: LaunchTarget,
    *,
    icon: str | None = None,
    name: str | None = None,
    desktop_file: Path | None = None,
) -> list[str]:
    """Expand desktop-entry field codes in ``exec_line`` for a single target."""
    argument = target.as_argument()
    target_used = False
    parts: list[str] = []
    for token in _split(exec_line):
        if token in TARGET_CODES:
            parts.append(argument)
            target_used = True
        elif token == "%i":
            if icon:
                parts.extend(["--icon", icon])
        elif token == "%c":
            if name:
                parts.append(name)
        elif token == "%k":
            if desktop_file is not None:
                parts.append(str(desktop_file))
        elif token in DEPRECATED_CODES:
            continue
        else:
            expanded, used = _expand_inline(token, argument, name, desktop_file)
            target_used = target_used or used
            if expanded:
                parts.append(expanded)
    if not parts:
        raise InvalidInputError("Empty exec command")
    if not target_used:
        parts.append(argument)
    return parts


def base_command_parts(exec_line: str) -> list[str]:
    """Exec line with every field code removed, used to build terminal launchers."""
    parts: list[str] = []
    for token in _split(exec_line):
        if token in TARGET_CODES or token in DEPRECATED_CODES or token in {"%i", "%c", "%k"}:
            continue
        stripped = _FIELD_CODE_RE.sub(lambda match: "%" if match.group(1) == "%" else "", token)
        if stripped:
            parts.append(stripped)
    if not parts:
        raise InvalidInputError("Empty exec command")
    return parts


def spawn_detached(command: list[str]) -> None:
    subprocess.Popen(
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


@dataclass(slots=True)
class ApplicationExecutor:
    launch_prefix: str = ""
    term_exec_args: str = "-e"
    spawn: Spawner = spawn_detached

    def build_command(
        self,
        app: ApplicationEntry,
        target: LaunchTarget,
        terminal_launcher: Sequence[str] | None = None,
    ) -> list[str]:
        command = prepare_command(
            app.exec,
            target,
            icon=app.icon,
            name=app.name,
            desktop_file=app.desktop_file,
        )
        prefix = _split(self.launch_prefix) if self.launch_prefix.strip() else []
        if terminal_launcher is not None:
            launcher = list(terminal_launcher)
            if self.term_exec_args.strip():
                launcher.extend(_split(self.term_exec_args))
            command = launcher + command
        return prefix + command

    def execute(
        self,
        app: ApplicationEntry,
        target: LaunchTarget,
        terminal_launcher: Sequence[str] | None = None,
    ) -> list[str]:
        command = self.build_command(app, target, terminal_launcher)
        _LOGGER.info("Executing: %s", shlex.join(command))
        telemetry.log_event(
            "executor.spawn",
            app=app.name,
            desktop_file=app.desktop_file,
            terminal=terminal_launcher is not None,
        )
        self.spawn(command)
        return command


def _split(text: str) -> list[str]:
    try:
        return shlex.split(text)
    except ValueError as exc:
        raise InvalidInputError(f"Failed to parse command `{text}`: {exc}") from exc


def _expand_inline(
    token: str,
    argument: str,
    name: str | None,
    desktop_file: Path | None,
) -> tuple[str, bool]:
    used = False

    def replace(match: re.Match[str]) -> str:
        nonlocal used
        code = match.group(1)
        if code == "%":
            return "%"
        if code in "fFuU":
            used = True
            return argument
        if code == "c":
            return name or ""
        if code == "k":
            return "" if desktop_file is None else str(desktop_file)
        return ""

    return _FIELD_CODE_RE.sub(replace, token), used
