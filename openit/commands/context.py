from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Final

from mime_logic.application.finder import ApplicationFinder
from mime_logic.associations import MimeAssociations
from mime_logic.cache import DesktopCache
from mime_logic.errors import InvalidInputError, ResolutionError
from mime_logic.mimeapps import MimeApps
from openit.application.cache_flow import load_desktop_cache
from openit.commands.mime_input import normalize_mime_input
from openit.platform.paths import XdgDirs

# Only the exact value "1" disables validation; meant for test suites.
SKIP_HANDLER_VALIDATION_ENV: Final[str] = "OPENIT_SKIP_HANDLER_VALIDATION"


@dataclass(slots=True)
class CommandContext:
    """Everything a command needs, built once per invocation."""

    dirs: XdgDirs
    skip_handler_validation: bool = False
    _cache: DesktopCache | None = field(default=None, repr=False)
    _finder: ApplicationFinder | None = field(default=None, repr=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CommandContext":
        env = os.environ if environ is None else environ
        return cls(
            dirs=XdgDirs.from_env(env),
            skip_handler_validation=env.get(SKIP_HANDLER_VALIDATION_ENV, "").strip() == "1",
        )

    def normalize_mime_input(self, text: str) -> str:
        return normalize_mime_input(text)

    @property
    def mimeapps_path(self) -> Path:
        return self.dirs.user_mimeapps_path()

    def load_mimeapps(self) -> MimeApps:
        return MimeApps.load_from_disk(self.mimeapps_path)

    def save_mimeapps(self, apps: MimeApps) -> None:
        apps.save_to_disk(self.mimeapps_path)

    def desktop_cache(self) -> DesktopCache:
        if self._cache is None:
            self._cache = load_desktop_cache(self.dirs)
        return self._cache

    def application_finder(self) -> ApplicationFinder:
        if self._finder is None:
            self._finder = ApplicationFinder(
                self.desktop_cache(), MimeAssociations.load(self.dirs)
            )
        return self._finder

    def ensure_handler_exists(self, handler: str) -> None:
        if not handler.strip():
            raise InvalidInputError("Handler identifier cannot be empty")
        if self.skip_handler_validation:
            return
        path = Path(handler)
        if (path.is_absolute() or "/" in handler) and path.exists():
            return
        finder = ApplicationFinder(self.desktop_cache(), MimeAssociations())
        if finder.find_desktop_file(handler) is None:
            raise ResolutionError(
                f"Desktop handler `{handler}` not found in available applications"
            )
