from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import subprocess
from typing import Final

from mime_logic.errors import InvalidInputError, ResolutionError
from mime_logic.models import ApplicationEntry
from openit.config import MarkerConfig
from openit.template import TemplateEngine

REGEX_HANDLER_PREFIX: Final[str] = "regex-handler-"

_LOGGER = logging.getLogger(__name__)


def marker_for(entry: ApplicationEntry, markers: MarkerConfig) -> str:
    if entry.is_default:
        return markers.default
    if entry.is_xdg:
        return markers.xdg
    return markers.available


def is_regex_handler(entry: ApplicationEntry) -> bool:
    return entry.desktop_file.name.startswith(REGEX_HANDLER_PREFIX)


def render_entry(entry: ApplicationEntry, markers: MarkerConfig, entry_template: str) -> str:
    engine = TemplateEngine()
    engine.set("marker", marker_for(entry, markers))
    engine.set("name", entry.name)
    engine.set("comment", f" - {entry.comment}" if entry.comment else "")
    engine.set("desktop_file", entry.desktop_file.name)
    line = engine.render(entry_template)
    return " ".join(line.splitlines())


@dataclass(frozen=True, slots=True)
class SelectorRunner:
    timeout: float | None = None

    def run(
        self,
        command: str,
        args: Sequence[str],
        entries: Sequence[ApplicationEntry],
        markers: MarkerConfig,
        entry_template: str,
    ) -> int | None:
        """Pipe the candidates to an external picker and return the chosen index."""
        if not entries:
            return None
        if not command.strip():
            raise InvalidInputError("Selector command is empty")
        lines = [render_entry(entry, markers, entry_template) for entry in entries]
        try:
            result = subprocess.run(
                [command, *args],
                input="\n".join(lines) + "\n",
                stdout=subprocess.PIPE,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise ResolutionError(f"Failed to run selector command `{command}`: {exc}") from exc
        if result.returncode != 0:
            _LOGGER.info("Selector command `%s` exited with status %s", command, result.returncode)
            return None
        selection = (result.stdout or "").strip()
        if not selection:
            _LOGGER.info("Selector command `%s` returned no selection", command)
            return None
        index = _match_selection(selection, lines, entries, markers)
        if index is None:
            expected = ", ".join(entry.name for entry in entries)
            raise ResolutionError(
                f"Selector returned unknown selection `{selection}` (expected one of [{expected}])"
            )
        return index


def _match_selection(
    selection: str,
    lines: Sequence[str],
    entries: Sequence[ApplicationEntry],
    markers: MarkerConfig,
) -> int | None:
    if selection.isdigit():
        position = int(selection)
        if position < len(entries):
            return position
    for position, line in enumerate(lines):
        if line.strip() == selection:
            return position
    cleaned = _strip_marker(selection, markers)
    for position, entry in enumerate(entries):
        if entry.name == cleaned:
            return position
    return None


def _strip_marker(selection: str, markers: MarkerConfig) -> str:
    for marker in (markers.default, markers.xdg, markers.available):
        token = marker.strip()
        if token and selection.startswith(token):
            return selection[len(token) :].strip()
    if selection.startswith("["):
        closing = selection.find("]")
        if closing != -1:
            return selection[closing + 1 :].strip()
    return selection
