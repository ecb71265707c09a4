from __future__ import annotations

from collections.abc import Iterable, Iterator
import logging
import os
from pathlib import Path

from mime_logic.cache import DesktopCache, FileSystemCache
from mime_logic.errors import CacheLoadError, DesktopParseError
from mime_logic.infrastructure.desktop_parser import parse_desktop_file
from openit import telemetry
from openit.platform.paths import XdgDirs

_LOGGER = logging.getLogger(__name__)


def load_desktop_cache(dirs: XdgDirs) -> FileSystemCache:
    cache = FileSystemCache(dirs.cache_path())
    try:
        cache.load()
    except CacheLoadError as exc:
        _LOGGER.debug("Failed to load cache: %s", exc)
        telemetry.log_error("cache.load_failed", exc, path=cache.cache_path)
        cache.clear()

    desktop_dirs = dirs.desktop_file_dirs()
    rebuild = cache.is_empty() or cache.needs_invalidation()
    if rebuild:
        _LOGGER.debug("Building desktop file cache")
        cache.clear()
    updated = populate_cache_from_dirs(cache, desktop_dirs, force=rebuild)
    telemetry.log_event("cache.ready", rebuild=rebuild, updated=updated, entries=len(cache))

    if rebuild or updated:
        try:
            cache.save()
        except OSError as exc:
            _LOGGER.debug("Failed to save cache: %s", exc)
            telemetry.log_error("cache.save_failed", exc, path=cache.cache_path)
    return cache


def populate_cache_from_dirs(
    cache: DesktopCache,
    desktop_dirs: Iterable[Path],
    *,
    force: bool,
) -> bool:
    updated = False
    for directory in desktop_dirs:
        if not directory.is_dir():
            _LOGGER.debug("Directory does not exist: %s", directory)
            continue
        for path in iter_desktop_files(directory):
            if not force and cache.get(path) is not None:
                continue
            try:
                desktop_file = parse_desktop_file(path)
            except DesktopParseError as exc:
                _LOGGER.debug("Failed to parse %s: %s", path, exc)
                continue
            cache.insert(path, desktop_file)
            updated = True
    return updated


def iter_desktop_files(directory: Path) -> Iterator[Path]:
    def on_error(exc: OSError) -> None:
        _LOGGER.debug("Skipping unreadable directory: %s", exc)

    for root, subdirs, files in os.walk(directory, onerror=on_error, followlinks=False):
        subdirs[:] = sorted(name for name in subdirs if not name.startswith("."))
        for name in sorted(files):
            if name.startswith(".") or not name.endswith(".desktop"):
                continue
            path = Path(root) / name
            if path.is_file():
                yield path


def clear_cache(dirs: XdgDirs) -> bool:
    """Delete the persisted cache; returns False when there was nothing to remove."""
    try:
        dirs.cache_path().unlink()
    except FileNotFoundError:
        _LOGGER.debug("No cache to clear")
        return False
    telemetry.log_event("cache.cleared", path=dirs.cache_path())
    return True
