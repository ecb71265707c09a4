from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "openit"
CACHE_FILE_NAME: Final[str] = "desktop_cache.json"
CACHE_PATH_ENV: Final[str] = "OPENIT_CACHE_PATH"
MIMEAPPS_FILE_NAME: Final[str] = "mimeapps.list"
DEFAULT_DATA_DIRS: Final[str] = "/usr/local/share:/usr/share"
DEFAULT_CONFIG_DIRS: Final[str] = "/etc/xdg"
FLATPAK_SYSTEM_APPS: Final[Path] = Path("/var/lib/flatpak/exports/share/applications")
FLATPAK_USER_APPS: Final[str] = ".local/share/flatpak/exports/share/applications"


@dataclass(frozen=True, slots=True)
class XdgDirs:
    home: Path
    data_home: Path
    config_home: Path
    cache_home: Path
    data_dirs: tuple[Path, ...]
    config_dirs: tuple[Path, ...]
    desktops: tuple[str, ...] = ()
    cache_override: Path | None = None
    flatpak_system_apps: Path = FLATPAK_SYSTEM_APPS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "XdgDirs":
        env = os.environ if environ is None else environ
        home_value = env.get("HOME", "").strip()
        home = Path(home_value) if home_value else Path.home()
        cache_override = env.get(CACHE_PATH_ENV, "").strip()
        return cls(
            home=home,
            data_home=_dir_from(env, "XDG_DATA_HOME", home / ".local" / "share"),
            config_home=_dir_from(env, "XDG_CONFIG_HOME", home / ".config"),
            cache_home=_dir_from(env, "XDG_CACHE_HOME", home / ".cache"),
            data_dirs=_dir_list(env.get("XDG_DATA_DIRS") or DEFAULT_DATA_DIRS),
            config_dirs=_dir_list(env.get("XDG_CONFIG_DIRS") or DEFAULT_CONFIG_DIRS),
            desktops=desktop_environment_names(env.get("XDG_CURRENT_DESKTOP", "")),
            cache_override=Path(cache_override) if cache_override else None,
        )

    @property
    def app_config_dir(self) -> Path:
        return self.config_home / APP_DIR_NAME

    def cache_path(self) -> Path:
        if self.cache_override is not None:
            return self.cache_override
        return self.cache_home / APP_DIR_NAME / CACHE_FILE_NAME

    def user_mimeapps_path(self) -> Path:
        return self.config_home / MIMEAPPS_FILE_NAME

    def desktop_file_dirs(self) -> list[Path]:
        candidates = [self.data_home / "applications"]
        candidates.extend(data_dir / "applications" for data_dir in self.data_dirs)
        candidates.append(self.flatpak_system_apps)
        candidates.append(self.home / FLATPAK_USER_APPS)
        dirs: list[Path] = []
        for candidate in candidates:
            if candidate in dirs or not candidate.is_dir():
                continue
            dirs.append(candidate)
        return dirs

    def mimeapps_list_files(self) -> list[Path]:
        """Every existing mimeapps.list, most authoritative first."""
        locations: list[Path] = [self.config_home]
        locations.extend(self.config_dirs)
        locations.append(self.data_home / "applications")
        locations.extend(data_dir / "applications" for data_dir in self.data_dirs)
        files: list[Path] = []
        for location in locations:
            for name in self._mimeapps_names():
                candidate = location / name
                if candidate.is_file():
                    files.append(candidate)
        return files

    def _mimeapps_names(self) -> list[str]:
        names = [f"{desktop}-{MIMEAPPS_FILE_NAME}" for desktop in self.desktops]
        names.append(MIMEAPPS_FILE_NAME)
        return names


def desktop_environment_names(value: str) -> tuple[str, ...]:
    return tuple(item.strip().lower() for item in value.split(":") if item.strip())


def _dir_from(env: Mapping[str, str], key: str, default: Path) -> Path:
    value = env.get(key, "").strip()
    if value:
        return Path(value)
    return default


def _dir_list(value: str) -> tuple[Path, ...]:
    return tuple(Path(item) for item in value.split(":") if item.strip())
