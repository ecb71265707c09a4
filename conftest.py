from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from openit import telemetry

_ISOLATED_ENV = (
    "XDG_DATA_DIRS",
    "XDG_CONFIG_DIRS",
    "XDG_CURRENT_DESKTOP",
    "OPENIT_SKIP_HANDLER_VALIDATION",
    "OPENIT_LOG_RESET",
)


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    # Pytest uses exit code 5 when no tests are collected, which would fail our
    # quality gate. Treat "no tests" as success.
    if exitstatus == 5:
        session.exitstatus = 0


def pytest_ignore_collect(collection_path: Path, config: pytest.Config) -> bool:
    del config
    ignored_parts = {
        ".uv-cache",
        ".uv_cache",
        ".venv",
        "__pycache__",
        ".problems",
    }
    return any(part in collection_path.parts for part in ignored_parts)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / ".cache"))
    monkeypatch.setenv("OPENIT_CACHE_PATH", str(tmp_path / "cache" / "desktop_cache.json"))
    monkeypatch.setenv("OPENIT_LOG_DIR", str(tmp_path / "logs"))
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_DATA_DIRS", str(tmp_path / "system-data"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "system-config"))
    telemetry.shutdown()
    yield
    telemetry.shutdown()
