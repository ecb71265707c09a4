from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
import json
import os
from pathlib import Path
import time
from typing import Final, Protocol

from mime_logic.domain.models import DesktopFile
from mime_logic.errors import CacheLoadError

DEFAULT_MAX_AGE_SECONDS: Final[float] = 24 * 60 * 60.0


class DesktopCache(Protocol):
    def load(self) -> None: ...

    def save(self) -> None: ...

    def get(self, path: Path) -> DesktopFile | None: ...

    def insert(self, path: Path, desktop_file: DesktopFile) -> None: ...

    def remove(self, path: Path) -> DesktopFile | None: ...

    def clear(self) -> None: ...

    def is_empty(self) -> bool: ...

    def __len__(self) -> int: ...

    def iter(self) -> Iterator[tuple[Path, DesktopFile]]: ...

    def needs_invalidation(self) -> bool: ...

    def invalidate_expired(self) -> None: ...


@dataclass(frozen=True, slots=True)
class CacheEntry:
    desktop_file: DesktopFile
    last_modified: float
    cached_at: float

    @classmethod
    def capture(cls, desktop_file: DesktopFile, path: Path) -> "CacheEntry":
        now = time.time()
        try:
            last_modified = path.stat().st_mtime
        except OSError:
            last_modified = now
        return cls(desktop_file=desktop_file, last_modified=last_modified, cached_at=now)

    def is_expired(self, path: Path, max_age: float) -> bool:
        try:
            modified = path.stat().st_mtime
        except OSError:
            return True
        if modified > self.last_modified:
            return True
        return time.time() - self.cached_at > max_age

    def to_dict(self) -> dict[str, object]:
        return {
            "desktop_file": self.desktop_file.to_dict(),
            "last_modified": self.last_modified,
            "cached_at": self.cached_at,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "CacheEntry":
        if not isinstance(payload, dict):
            raise ValueError("cache entry must be an object")
        raw_file = payload.get("desktop_file")
        last_modified = payload.get("last_modified")
        cached_at = payload.get("cached_at")
        if not isinstance(raw_file, dict):
            raise ValueError("desktop_file must be an object")
        if not _is_number(last_modified) or not _is_number(cached_at):
            raise ValueError("timestamps must be numbers")
        return cls(
            desktop_file=DesktopFile.from_dict(raw_file),
            last_modified=float(last_modified),  # type: ignore[arg-type]
            cached_at=float(cached_at),  # type: ignore[arg-type]
        )


def _default_files() -> dict[Path, DesktopFile]:
    return {}


def _default_entries() -> dict[Path, CacheEntry]:
    return {}


@dataclass(slots=True)
class MemoryCache:
    _entries: dict[Path, DesktopFile] = field(default_factory=_default_files)

    def load(self) -> None:
        return

    def save(self) -> None:
        return

    def get(self, path: Path) -> DesktopFile | None:
        return self._entries.get(path)

    def insert(self, path: Path, desktop_file: DesktopFile) -> None:
        self._entries[path] = desktop_file

    def remove(self, path: Path) -> DesktopFile | None:
        return self._entries.pop(path, None)

    def clear(self) -> None:
        self._entries.clear()

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def iter(self) -> Iterator[tuple[Path, DesktopFile]]:
        return iter(list(self._entries.items()))

    def needs_invalidation(self) -> bool:
        return False

    def invalidate_expired(self) -> None:
        return


@dataclass(slots=True)
class FileSystemCache:
    cache_path: Path
    max_age: float = DEFAULT_MAX_AGE_SECONDS
    _entries: dict[Path, CacheEntry] = field(default_factory=_default_entries)

    def load(self) -> None:
        if not self.cache_path.exists():
            return
        try:
            raw_data = self.cache_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheLoadError(f"Failed to read cache file {self.cache_path}: {exc}") from exc
        try:
            payload: object = json.loads(raw_data)
        except json.JSONDecodeError as exc:
            raise CacheLoadError(f"Failed to parse cache file {self.cache_path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise CacheLoadError(f"Cache file {self.cache_path} is not a JSON object")
        entries: dict[Path, CacheEntry] = {}
        for raw_path, raw_entry in payload.items():
            try:
                entries[Path(raw_path)] = CacheEntry.from_dict(raw_entry)
            except ValueError as exc:
                raise CacheLoadError(
                    f"Invalid cache entry for {raw_path} in {self.cache_path}: {exc}"
                ) from exc
        self._entries = entries
        self.invalidate_expired()

    def save(self) -> None:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {str(path): entry.to_dict() for path, entry in self._entries.items()}
        data = json.dumps(payload, ensure_ascii=True, separators=(",", ":"))
        tmp_path = self.cache_path.with_name(f".{self.cache_path.name}.{os.getpid()}.tmp")
        try:
            tmp_path.write_text(data, encoding="utf-8")
            os.replace(tmp_path, self.cache_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def get(self, path: Path) -> DesktopFile | None:
        entry = self._entries.get(path)
        if entry is None:
            return None
        return entry.desktop_file

    def get_entry(self, path: Path) -> CacheEntry | None:
        return self._entries.get(path)

    def insert(self, path: Path, desktop_file: DesktopFile) -> None:
        self._entries[path] = CacheEntry.capture(desktop_file, path)

    def remove(self, path: Path) -> DesktopFile | None:
        entry = self._entries.pop(path, None)
        if entry is None:
            return None
        return entry.desktop_file

    def clear(self) -> None:
        self._entries.clear()

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def iter(self) -> Iterator[tuple[Path, DesktopFile]]:
        return iter([(path, entry.desktop_file) for path, entry in self._entries.items()])

    def needs_invalidation(self) -> bool:
        return any(
            entry.is_expired(path, self.max_age) for path, entry in self._entries.items()
        )

    def invalidate_expired(self) -> None:
        expired = [
            path
            for path, entry in self._entries.items()
            if entry.is_expired(path, self.max_age)
        ]
        for path in expired:
            del self._entries[path]


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
