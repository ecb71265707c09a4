from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import mimetypes
from pathlib import Path
import re
from typing import Final
from urllib.parse import unquote, urlsplit

from mime_logic.errors import InvalidInputError

DIRECTORY_MIME: Final[str] = "inode/directory"
FALLBACK_MIME: Final[str] = "application/octet-stream"
_SCHEME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


class TargetKind(Enum):
    FILE = "file"
    URI = "uri"


@dataclass(frozen=True, slots=True)
class LaunchTarget:
    kind: TargetKind
    value: str

    @classmethod
    def for_path(cls, path: Path) -> "LaunchTarget":
        return cls(kind=TargetKind.FILE, value=str(path))

    @property
    def path(self) -> Path | None:
        if self.kind is TargetKind.FILE:
            return Path(self.value)
        return None

    @property
    def scheme(self) -> str | None:
        if self.kind is TargetKind.URI:
            return urlsplit(self.value).scheme.lower()
        return None

    def as_argument(self) -> str:
        return self.value

    def display_name(self) -> str:
        path = self.path
        if path is not None and path.name:
            return path.name
        return self.value


def resolve_launch_target(raw: str) -> LaunchTarget:
    text = raw.strip()
    if not text:
        raise InvalidInputError("No target provided")
    if _SCHEME_RE.match(text):
        parts = urlsplit(text)
        if parts.scheme.lower() == "file":
            if parts.netloc not in ("", "localhost"):
                raise InvalidInputError(f"Invalid file URI: {raw}")
            return LaunchTarget.for_path(_existing_path(Path(unquote(parts.path))))
        return LaunchTarget(kind=TargetKind.URI, value=text)
    return LaunchTarget.for_path(_existing_path(Path(text).expanduser()))


def mime_for_target(target: LaunchTarget) -> str:
    path = target.path
    if path is None:
        return f"x-scheme-handler/{target.scheme}"
    if path.is_dir():
        return DIRECTORY_MIME
    mime, _encoding = mimetypes.guess_type(path.name, strict=False)
    return mime or FALLBACK_MIME


def _existing_path(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except OSError as exc:
        raise InvalidInputError(f"Failed to resolve file path: {path}") from exc
