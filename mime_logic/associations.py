from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Final, Protocol

from mime_logic.shared.mime_pattern import matches

DEFAULT_APPLICATIONS_SECTION: Final[str] = "Default Applications"
ADDED_ASSOCIATIONS_SECTION: Final[str] = "Added Associations"

_LOGGER = logging.getLogger(__name__)


class MimeappsSource(Protocol):
    def mimeapps_list_files(self) -> list[Path]: ...


class _Section(Enum):
    DEFAULT = "default"
    ADDED = "added"
    OTHER = "other"


def _default_index() -> dict[str, list[str]]:
    return {}


@dataclass(frozen=True, slots=True)
class MimeAssociations:
    """Read-only MIME -> handler index merged from every mimeapps.list source."""

    _index: dict[str, list[str]] = field(default_factory=_default_index)

    @classmethod
    def load(cls, source: MimeappsSource) -> "MimeAssociations":
        return cls.from_files(source.mimeapps_list_files())

    @classmethod
    def from_files(cls, files: Iterable[Path]) -> "MimeAssociations":
        # Most authoritative file comes first in search order, so it is folded last.
        index: dict[str, list[str]] = {}
        for path in reversed(list(files)):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                _LOGGER.debug("Skipping unreadable mimeapps file %s: %s", path, exc)
                continue
            _fold(index, text)
        return cls(_index=index)

    @classmethod
    def from_text(cls, *texts: str) -> "MimeAssociations":
        index: dict[str, list[str]] = {}
        for text in texts:
            _fold(index, text)
        return cls(_index=index)

    def get_associations(self, mime: str) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        exact = self._index.get(mime)
        if exact is not None:
            for handler in exact:
                if handler not in seen:
                    seen.add(handler)
                    result.append(handler)
        for key in sorted(self._index):
            if key == mime or not matches(key, mime):
                continue
            for handler in self._index[key]:
                if handler not in seen:
                    seen.add(handler)
                    result.append(handler)
        return result

    def keys(self) -> list[str]:
        return sorted(self._index)

    def __len__(self) -> int:
        return len(self._index)


def _fold(index: dict[str, list[str]], text: str) -> None:
    section = _Section.OTHER
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = _section_for(line[1:-1].strip())
            continue
        if section is _Section.OTHER or "=" not in line:
            continue
        key, _, value = line.partition("=")
        mime = key.strip()
        handlers = [item.strip() for item in value.split(";") if item.strip()]
        if not mime or not handlers:
            continue
        if section is _Section.DEFAULT:
            index[mime] = handlers
        else:
            index.setdefault(mime, []).extend(handlers)


def _section_for(name: str) -> _Section:
    if name == DEFAULT_APPLICATIONS_SECTION:
        return _Section.DEFAULT
    if name == ADDED_ASSOCIATIONS_SECTION:
        return _Section.ADDED
    return _Section.OTHER
