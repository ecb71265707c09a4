from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
import io
import os
from pathlib import Path
import tempfile
from typing import Final, TextIO

from mime_logic.associations import ADDED_ASSOCIATIONS_SECTION, DEFAULT_APPLICATIONS_SECTION
from mime_logic.errors import MimeAppsError
from mime_logic.shared.mime_pattern import matches

_DEFAULT_HEADER: Final[str] = f"[{DEFAULT_APPLICATIONS_SECTION}]"
_ADDED_HEADER: Final[str] = f"[{ADDED_ASSOCIATIONS_SECTION}]"


def _default_handlers() -> list[str]:
    return []


@dataclass(slots=True)
class DesktopList:
    """Ordered handler queue for one MIME key; never holds the same id twice."""

    _handlers: list[str] = field(default_factory=_default_handlers)

    @classmethod
    def of(cls, handlers: Iterable[str]) -> "DesktopList":
        queue = cls()
        queue.extend(handlers)
        return queue

    def extend(self, handlers: Iterable[str]) -> None:
        for handler in handlers:
            self.push_back(handler)

    def push_back(self, handler: str) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def retain(self, keep: Callable[[str], bool]) -> None:
        self._handlers = [handler for handler in self._handlers if keep(handler)]

    def clear(self) -> None:
        self._handlers.clear()

    def is_empty(self) -> bool:
        return not self._handlers

    def __contains__(self, handler: object) -> bool:
        return handler in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def to_list(self) -> list[str]:
        return list(self._handlers)


def _default_sections() -> dict[str, DesktopList]:
    return {}


@dataclass(slots=True)
class MimeApps:
    """Editable view of the user's own mimeapps.list."""

    _default_apps: dict[str, DesktopList] = field(default_factory=_default_sections)
    _added_associations: dict[str, DesktopList] = field(default_factory=_default_sections)

    @classmethod
    def load_from_disk(cls, path: Path) -> "MimeApps":
        if not path.exists():
            return cls()
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MimeAppsError(f"Failed to decode {path} as UTF-8: {exc}") from exc
        return cls.parse(text)

    def save_to_disk(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        buffer = io.StringIO()
        self.write(buffer)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(buffer.getvalue())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @classmethod
    def parse(cls, text: str) -> "MimeApps":
        apps = cls()
        section: dict[str, DesktopList] | None = None
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line == _DEFAULT_HEADER:
                section = apps._default_apps
                continue
            if line == _ADDED_HEADER:
                section = apps._added_associations
                continue
            if line.startswith("[") and line.endswith("]"):
                section = None
                continue
            if section is None or "=" not in line:
                continue
            key, _, value = line.partition("=")
            handlers = [item.strip() for item in value.split(";") if item.strip()]
            if not handlers:
                continue
            section.setdefault(key.strip(), DesktopList()).extend(handlers)
        return apps

    def write(self, out: TextIO) -> None:
        _write_section(out, _DEFAULT_HEADER, self._default_apps)
        _write_section(out, _ADDED_HEADER, self._added_associations)

    def to_text(self) -> str:
        buffer = io.StringIO()
        self.write(buffer)
        return buffer.getvalue()

    def set_handler(self, pattern: str, handlers: Iterable[str], expand_wildcards: bool) -> None:
        replacement = list(handlers)

        def apply(queue: DesktopList) -> None:
            queue.clear()
            queue.extend(replacement)

        self._apply(pattern, expand_wildcards, apply)

    def add_handler(self, pattern: str, handler: str, expand_wildcards: bool) -> None:
        self._apply(pattern, expand_wildcards, lambda queue: queue.push_back(handler))

    def remove_handler(self, pattern: str, handler: str | None, expand_wildcards: bool) -> None:
        def apply(queue: DesktopList) -> None:
            if handler is None:
                queue.clear()
            else:
                queue.retain(lambda item: item != handler)

        self._apply(pattern, expand_wildcards, apply)
        self._default_apps = {
            mime: queue for mime, queue in self._default_apps.items() if not queue.is_empty()
        }

    def handlers_for(self, mime: str) -> DesktopList | None:
        return self._default_apps.get(mime)

    def default_apps(self) -> dict[str, DesktopList]:
        return {mime: self._default_apps[mime] for mime in sorted(self._default_apps)}

    def added_associations(self) -> dict[str, DesktopList]:
        return {mime: self._added_associations[mime] for mime in sorted(self._added_associations)}

    def resolve_targets(self, pattern: str, expand_wildcards: bool) -> list[str]:
        if not expand_wildcards or "*" not in pattern:
            return [pattern]
        known = sorted(set(self._default_apps) | set(self._added_associations))
        return [mime for mime in known if matches(pattern, mime)]

    def _apply(
        self,
        pattern: str,
        expand_wildcards: bool,
        mutate: Callable[[DesktopList], None],
    ) -> None:
        for mime in self.resolve_targets(pattern, expand_wildcards):
            mutate(self._default_apps.setdefault(mime, DesktopList()))


def _write_section(out: TextIO, header: str, entries: dict[str, DesktopList]) -> None:
    lines = [
        f"{mime}={';'.join(entries[mime])};"
        for mime in sorted(entries)
        if not entries[mime].is_empty()
    ]
    if not lines:
        return
    out.write(f"{header}\n")
    for line in lines:
        out.write(f"{line}\n")
    out.write("\n")
