from __future__ import annotations

from pathlib import Path

import pytest

from mime_logic.errors import DesktopParseError
from mime_logic.infrastructure.desktop_parser import parse_bool, parse_desktop_file, parse_list
from mime_logic.models import ApplicationEntry, DesktopFile


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_parse_full_entry_with_actions(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "firefox.desktop",
        "[Desktop Entry]\n"
        "Type=Application\n"
        "Name=Firefox\n"
        "Comment=Browse the web\n"
        "Exec=firefox %u\n"
        "Icon=firefox\n"
        "MimeType=text/html;x-scheme-handler/https;;\n"
        "Categories=Network;WebBrowser;\n"
        "Actions=new-window;private;\n"
        "Terminal=false\n"
        "NoDisplay=TRUE\n"
        "\n"
        "[Desktop Action new-window]\n"
        "Name=New Window\n"
        "Exec=firefox --new-window %u\n"
        "\n"
        "[Desktop Action private]\n"
        "Name=Private Window\n"
        "Exec=firefox --private-window %u\n"
        "Icon=firefox-private\n",
    )

    desktop_file = parse_desktop_file(path)

    entry = desktop_file.main_entry
    assert entry is not None
    assert entry.name == "Firefox"
    assert entry.exec == "firefox %u"
    assert entry.comment == "Browse the web"
    assert entry.icon == "firefox"
    assert entry.mime_types == ("text/html", "x-scheme-handler/https")
    assert entry.categories == ("Network", "WebBrowser")
    assert entry.actions == ("new-window", "private")
    assert entry.no_display is True
    assert entry.terminal is False
    assert entry.hidden is False
    assert set(desktop_file.actions) == {"new-window", "private"}
    assert desktop_file.actions["private"].icon == "firefox-private"
    assert desktop_file.actions["new-window"].icon is None


def test_missing_name_is_a_parse_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.desktop", "[Desktop Entry]\nExec=broken\n")

    with pytest.raises(DesktopParseError, match="Missing Name"):
        parse_desktop_file(path)


def test_missing_exec_is_a_parse_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.desktop", "[Desktop Entry]\nName=Broken\n")

    with pytest.raises(DesktopParseError, match="Missing Exec"):
        parse_desktop_file(path)


def test_missing_desktop_entry_group_is_a_parse_error(tmp_path: Path) -> None:
    path = _write(tmp_path, "other.desktop", "[Something Else]\nName=X\nExec=x\n")

    with pytest.raises(DesktopParseError):
        parse_desktop_file(path)


def test_missing_file_is_a_parse_error(tmp_path: Path) -> None:
    with pytest.raises(DesktopParseError):
        parse_desktop_file(tmp_path / "absent.desktop")


def test_incomplete_action_is_skipped(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "editor.desktop",
        "[Desktop Entry]\nName=Editor\nExec=editor %F\n\n"
        "[Desktop Action broken]\nName=Broken\n\n"
        "[Desktop Action ok]\nName=Ok\nExec=editor --ok\n",
    )

    desktop_file = parse_desktop_file(path)

    assert list(desktop_file.actions) == ["ok"]


def test_terminal_emulator_category(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "kitty.desktop",
        "[Desktop Entry]\nName=kitty\nExec=kitty\nCategories=System;TerminalEmulator;\n",
    )

    entry = parse_desktop_file(path).main_entry

    assert entry is not None
    assert entry.is_terminal_emulator is True


def test_parse_helpers() -> None:
    assert parse_bool("True") is True
    assert parse_bool(" true ") is True
    assert parse_bool("yes") is False
    assert parse_list("a; b;;c;") == ("a", "b", "c")
    assert parse_list("") == ()


def test_desktop_file_dict_round_trip_keeps_actions(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "app.desktop",
        "[Desktop Entry]\nName=App\nExec=app\nMimeType=text/plain;\n\n"
        "[Desktop Action extra]\nName=Extra\nExec=app --extra\n",
    )
    desktop_file = parse_desktop_file(path)

    restored = DesktopFile.from_dict(desktop_file.to_dict())

    assert restored == desktop_file


def test_desktop_file_from_dict_rejects_bad_shape() -> None:
    with pytest.raises(ValueError):
        DesktopFile.from_dict({"main_entry": "nope"})
    with pytest.raises(ValueError):
        DesktopFile.from_dict({"main_entry": {"name": "x"}})


def test_action_entry_naming_and_icon_fallback(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "app.desktop",
        "[Desktop Entry]\nName=App\nExec=app\nIcon=app-icon\nTerminal=true\n\n"
        "[Desktop Action extra]\nName=Extra\nExec=app --extra\n",
    )
    desktop_file = parse_desktop_file(path)
    assert desktop_file.main_entry is not None

    entry = ApplicationEntry.from_desktop_action(
        desktop_file.main_entry,
        "extra",
        desktop_file.actions["extra"],
        path,
        priority=0,
    )

    assert entry.name == "App - Extra"
    assert entry.comment == "Action: Extra"
    assert entry.icon == "app-icon"
    assert entry.action_id == "extra"
    assert entry.is_xdg is True
    assert entry.is_default is False
    assert entry.requires_terminal is True
