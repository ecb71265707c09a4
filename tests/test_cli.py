from __future__ import annotations

import json
from pathlib import Path

import pytest

from openit import main as main_module
from openit.cli import build_parser, normalize_argv
from openit.commands.completions import render_completions


def _install_app(tmp_path: Path, file_name: str, mime: str) -> Path:
    apps_dir = tmp_path / "home" / ".local" / "share" / "applications"
    apps_dir.mkdir(parents=True, exist_ok=True)
    path = apps_dir / file_name
    name = file_name.removesuffix(".desktop")
    path.write_text(
        f"[Desktop Entry]\nName={name}\nExec={name} %f\nMimeType={mime};\n", encoding="utf-8"
    )
    return path


def _mimeapps(tmp_path: Path) -> Path:
    return tmp_path / "home" / ".config" / "mimeapps.list"


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["notes.txt"], ["open", "notes.txt"]),
        (["--json", "notes.txt"], ["--json", "open", "notes.txt"]),
        (["-c", "cfg.json", "notes.txt"], ["-c", "cfg.json", "open", "notes.txt"]),
        (["get", "text/plain"], ["get", "text/plain"]),
        (["--", "-odd-name"], ["open", "--", "-odd-name"]),
        (["--clear-cache"], ["--clear-cache"]),
        ([], []),
    ],
)
def test_normalize_argv(argv: list[str], expected: list[str]) -> None:
    assert normalize_argv(argv) == expected


def test_set_list_and_unset_round_trip(tmp_path, capsys) -> None:
    _install_app(tmp_path, "editor.desktop", "text/plain")

    assert main_module.main(["set", "txt", "editor.desktop"]) == 0
    assert "Set default handler for text/plain -> editor.desktop" in capsys.readouterr().out
    assert _mimeapps(tmp_path).read_text(encoding="utf-8") == (
        "[Default Applications]\ntext/plain=editor.desktop;\n\n"
    )

    assert main_module.main(["list"]) == 0
    assert capsys.readouterr().out.strip() == "text/plain: editor.desktop"

    assert main_module.main(["unset", "text/plain"]) == 0
    assert "Unset handlers for text/plain" in capsys.readouterr().out
    assert _mimeapps(tmp_path).read_text(encoding="utf-8") == ""


def test_unknown_handler_is_rejected(tmp_path, capsys) -> None:
    _install_app(tmp_path, "editor.desktop", "text/plain")

    assert main_module.main(["set", "text/plain", "ghost.desktop"]) == 1

    captured = capsys.readouterr()
    assert "Desktop handler `ghost.desktop` not found in available applications" in captured.err
    assert not _mimeapps(tmp_path).exists()


def test_handler_validation_can_be_skipped(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("OPENIT_SKIP_HANDLER_VALIDATION", "1")

    assert main_module.main(["add", "image/png", "ghost.desktop"]) == 0
    assert main_module.main(["add", "image/png", "other.desktop"]) == 0
    assert main_module.main(["remove", "image/png", "ghost.desktop"]) == 0

    capsys.readouterr()
    assert main_module.main(["list", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {
        "default_apps": [{"mime": "image/png", "handlers": ["other.desktop"]}],
        "added_associations": [],
    }


def test_set_with_expanded_wildcard(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("OPENIT_SKIP_HANDLER_VALIDATION", "1")
    path = _mimeapps(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text(
        "[Default Applications]\n"
        "image/png=a.desktop;\n"
        "image/jpeg=b.desktop;\n"
        "text/plain=c.desktop;\n",
        encoding="utf-8",
    )

    assert main_module.main(["set", "image/*", "viewer.desktop", "--expand-wildcards"]) == 0

    assert path.read_text(encoding="utf-8") == (
        "[Default Applications]\n"
        "image/jpeg=viewer.desktop;\n"
        "image/png=viewer.desktop;\n"
        "text/plain=c.desktop;\n"
        "\n"
    )


def test_get_reports_default_and_available(tmp_path, capsys) -> None:
    _install_app(tmp_path, "editor.desktop", "text/plain")
    _install_app(tmp_path, "pager.desktop", "text/*")
    path = _mimeapps(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_text("[Default Applications]\ntext/plain=pager.desktop;\n", encoding="utf-8")

    assert main_module.main(["get", "text/plain"]) == 0
    text = capsys.readouterr().out
    assert "MIME type: text/plain" in text
    assert "Available applications (2):" in text
    assert "★ pager" in text
    assert "  editor" in text
    assert "Legend: ★=Default  ▶=XDG Associated  (space)=Available" in text

    assert main_module.main(["get", "txt", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["mimetype"] == "text/plain"
    assert payload["xdg_associations"] == ["pager.desktop"]
    assert [app["name"] for app in payload["applications"]] == ["pager", "editor"]


def test_get_wildcard_pattern(tmp_path, capsys) -> None:
    _install_app(tmp_path, "viewer.desktop", "image/png")
    _install_app(tmp_path, "editor.desktop", "text/plain")

    assert main_module.main(["--json", "get", "image/*"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["pattern"] == "image/*"
    assert payload["matching_mimes"] == ["image/png"]
    assert [app["name"] for app in payload["results"]["image/png"]] == ["viewer"]


def test_open_json_does_not_launch(tmp_path, capsys) -> None:
    _install_app(tmp_path, "editor.desktop", "text/plain")
    document = tmp_path / "notes.txt"
    document.write_text("x", encoding="utf-8")

    assert main_module.main(["--json", str(document)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["mimetype"] == "text/plain"
    assert payload["applications"][0]["name"] == "editor"


def test_open_missing_file_fails(tmp_path, capsys) -> None:
    assert main_module.main([str(tmp_path / "absent.txt")]) == 1
    assert "Failed to resolve file path" in capsys.readouterr().err


def test_open_without_target_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main([])

    assert excinfo.value.code == 2
    assert "a target argument is required" in capsys.readouterr().err


def test_clear_cache_and_generate_config(tmp_path, capsys) -> None:
    cache_path = tmp_path / "cache" / "desktop_cache.json"
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text("{}", encoding="utf-8")

    assert main_module.main(["--clear-cache"]) == 0
    assert capsys.readouterr().out.strip() == "Cache cleared"
    assert main_module.main(["clear-cache"]) == 0
    assert capsys.readouterr().out.strip() == "No cache to clear"

    config_file = tmp_path / "generated.json"
    assert main_module.main(["--generate-config", "-c", str(config_file)]) == 0
    payload = json.loads(config_file.read_text(encoding="utf-8"))
    assert payload["selectors"]["fzf"]["command"] == "fzf"


def test_completions_written_to_file(tmp_path, capsys) -> None:
    output = tmp_path / "openit.fish"

    assert main_module.main(["completions", "fish", "-o", str(output)]) == 0

    assert capsys.readouterr().out.strip() == f"Generated fish completions at {output}"
    script = output.read_text(encoding="utf-8")
    assert "complete -c openit" in script
    assert "-a get" in script


@pytest.mark.parametrize("shell", ["bash", "zsh", "fish"])
def test_completions_mention_every_command(shell: str) -> None:
    script = render_completions(build_parser(), shell, prog="openit")

    for command in ("open", "set", "add", "remove", "unset", "list", "get", "clear-cache"):
        assert command in script


def test_unsupported_shell_is_rejected() -> None:
    with pytest.raises(ValueError):
        render_completions(build_parser(), "tcsh", prog="openit")


def test_undecodable_mimeapps_is_reported(tmp_path, capsys) -> None:
    path = _mimeapps(tmp_path)
    path.parent.mkdir(parents=True)
    path.write_bytes(b"[Default Applications]\ntext/plain=\xff.desktop;\n")

    assert main_module.main(["list"]) == 1

    err = capsys.readouterr().err
    assert err.startswith("error: Failed to decode")
    assert str(path) in err


def test_validation_flag_needs_exact_value(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("OPENIT_SKIP_HANDLER_VALIDATION", "yes")

    assert main_module.main(["add", "image/png", "ghost.desktop"]) == 1

    assert "Desktop handler `ghost.desktop` not found" in capsys.readouterr().err
    assert not _mimeapps(tmp_path).exists()
