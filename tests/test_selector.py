from __future__ import annotations

from pathlib import Path

import pytest

from mime_logic.errors import InvalidInputError, ResolutionError
from mime_logic.models import ApplicationEntry
from openit.adapters.selector import SelectorRunner, is_regex_handler, marker_for, render_entry
from openit.config import DEFAULT_ENTRY_TEMPLATE, MarkerConfig

MARKERS = MarkerConfig(default="★ ", xdg="▶ ", available="  ")
ENTRIES = [
    ApplicationEntry(
        name="Editor",
        exec="editor %f",
        desktop_file=Path("/apps/editor.desktop"),
        comment="Edit text",
        is_xdg=True,
        xdg_priority=0,
        is_default=True,
    ),
    ApplicationEntry(
        name="Viewer",
        exec="viewer %f",
        desktop_file=Path("/apps/viewer.desktop"),
        is_xdg=True,
        xdg_priority=1,
    ),
    ApplicationEntry(name="Pager", exec="less %f", desktop_file=Path("/apps/pager.desktop")),
]


def _script(tmp_path: Path, body: str) -> str:
    path = tmp_path / "selector.sh"
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return str(path)


def test_markers_follow_entry_flags() -> None:
    assert [marker_for(entry, MARKERS) for entry in ENTRIES] == ["★ ", "▶ ", "  "]


def test_render_entry_uses_template() -> None:
    assert render_entry(ENTRIES[0], MARKERS, DEFAULT_ENTRY_TEMPLATE) == "★ Editor - Edit text"
    assert render_entry(ENTRIES[2], MARKERS, "{name} ({desktop_file})") == "Pager (pager.desktop)"


def test_regex_handler_detection() -> None:
    regex_entry = ApplicationEntry(
        name="x", exec="x", desktop_file=Path("regex-handler-5.desktop")
    )

    assert is_regex_handler(regex_entry) is True
    assert is_regex_handler(ENTRIES[0]) is False


def test_selector_returns_chosen_line_index(tmp_path: Path) -> None:
    command = _script(tmp_path, "head -n 2 | tail -n 1")

    index = SelectorRunner().run(command, [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE)

    assert index == 1


def test_selector_accepts_numeric_index(tmp_path: Path) -> None:
    command = _script(tmp_path, "cat >/dev/null\necho 2")

    assert SelectorRunner().run(command, [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE) == 2


def test_selector_accepts_bare_name(tmp_path: Path) -> None:
    command = _script(tmp_path, 'cat >/dev/null\necho "$1"')

    index = SelectorRunner().run(command, ["Pager"], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE)

    assert index == 2


def test_cancelled_or_empty_selection_returns_none(tmp_path: Path) -> None:
    cancelled = _script(tmp_path, "cat >/dev/null\nexit 130")
    runner = SelectorRunner()

    assert runner.run(cancelled, [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE) is None
    assert runner.run("true", [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE) is None
    assert runner.run("cat", [], [], MARKERS, DEFAULT_ENTRY_TEMPLATE) is None


def test_unknown_selection_is_an_error(tmp_path: Path) -> None:
    command = _script(tmp_path, "cat >/dev/null\necho Nope")

    with pytest.raises(ResolutionError, match="unknown selection `Nope`"):
        SelectorRunner().run(command, [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE)


def test_missing_selector_command(tmp_path: Path) -> None:
    runner = SelectorRunner()

    with pytest.raises(ResolutionError, match="Failed to run selector command"):
        runner.run(str(tmp_path / "absent"), [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE)
    with pytest.raises(InvalidInputError):
        runner.run(" ", [], ENTRIES, MARKERS, DEFAULT_ENTRY_TEMPLATE)
