from __future__ import annotations

import json
from pathlib import Path

import pytest

from mime_logic.errors import RegexHandlerError
from openit.platform import XdgDirs
from openit.services.regex_handlers import RegexHandlerStore


def test_missing_file_gives_empty_store(tmp_path: Path) -> None:
    store = RegexHandlerStore.load(tmp_path / "regex_handlers.json")

    assert store.is_empty()
    assert store.find_handler("https://example.com") is None


def test_default_path_lives_in_app_config_dir(tmp_path) -> None:
    path = RegexHandlerStore.default_path(XdgDirs.from_env())

    assert path == tmp_path / "home" / ".config" / "openit" / "regex_handlers.json"


def test_handlers_sorted_by_priority_and_first_match_wins(tmp_path: Path) -> None:
    path = tmp_path / "regex_handlers.json"
    path.write_text(
        json.dumps(
            {
                "handlers": [
                    {"exec": "low %u", "regexes": ["example"], "priority": 1},
                    {
                        "exec": "mpv %u",
                        "regexes": [r"youtube\.com/watch", r"\.mkv$"],
                        "priority": 10,
                        "terminal": True,
                        "notes": "Video player",
                    },
                    {"exec": "also-low %u", "regexes": ["example"], "priority": 1},
                ]
            }
        ),
        encoding="utf-8",
    )

    store = RegexHandlerStore.load(path)

    assert [handler.exec for handler in store.handlers] == ["mpv %u", "low %u", "also-low %u"]
    assert store.find_handler("https://www.youtube.com/watch?v=1") is store.handlers[0]
    assert store.find_handler("/tmp/movie.mkv") is store.handlers[0]
    matched = store.find_handler("https://example.com")
    assert matched is not None and matched.exec == "low %u"
    assert store.find_handler("/tmp/notes.txt") is None


def test_handler_becomes_application_entry() -> None:
    store = RegexHandlerStore.from_payload(
        {"handlers": [{"exec": "mpv %u", "regexes": ["a", "b"], "priority": 7, "terminal": True}]}
    )

    app = store.handlers[0].to_application()

    assert app.name == "Regex handler (prio 7)"
    assert app.comment == "Regex handler -> mpv %u [a, b]"
    assert app.desktop_file == Path("regex-handler-7.desktop")
    assert app.requires_terminal is True
    assert app.is_xdg is False


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"handlers": {}},
        {"handlers": ["mpv"]},
        {"handlers": [{"regexes": ["x"]}]},
        {"handlers": [{"exec": "mpv", "regexes": "x"}]},
        {"handlers": [{"exec": "mpv", "regexes": ["("]}]},
        {"handlers": [{"exec": "mpv", "regexes": ["x"], "priority": "high"}]},
    ],
)
def test_invalid_documents_are_rejected(payload: object) -> None:
    with pytest.raises(RegexHandlerError):
        RegexHandlerStore.from_payload(payload)


def test_unparseable_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "regex_handlers.json"
    path.write_text("{", encoding="utf-8")

    with pytest.raises(RegexHandlerError, match="Failed to parse"):
        RegexHandlerStore.load(path)


def test_undecodable_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "regex_handlers.json"
    path.write_bytes(b'{"handlers": ["\xff"]}')

    with pytest.raises(RegexHandlerError, match="Failed to read"):
        RegexHandlerStore.load(path)
