from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mime_logic.associations import MimeAssociations
from mime_logic.cache import DesktopCache
from mime_logic.domain.models import NOT_XDG_PRIORITY, ApplicationEntry, DesktopFile
from mime_logic.shared.mime_pattern import matches


@dataclass(slots=True)
class ApplicationFinder:
    cache: DesktopCache
    associations: MimeAssociations

    def find_for_mime(self, mime: str, include_actions: bool = False) -> list[ApplicationEntry]:
        results: list[ApplicationEntry] = []
        seen: set[str] = set()

        for priority, handler_id in enumerate(self.associations.get_associations(mime)):
            found = self.find_desktop_file(handler_id)
            if found is None:
                continue
            path, desktop_file = found
            if desktop_file.main_entry is None or path.name in seen:
                continue
            seen.add(path.name)
            results.extend(
                _entries_for(path, desktop_file, priority=priority, include_actions=include_actions)
            )

        for path, desktop_file in self._sorted_cache():
            entry = desktop_file.main_entry
            if entry is None or path.name in seen:
                continue
            if not any(matches(declared, mime) for declared in entry.mime_types):
                continue
            seen.add(path.name)
            results.extend(
                _entries_for(
                    path,
                    desktop_file,
                    priority=NOT_XDG_PRIORITY,
                    include_actions=include_actions,
                )
            )
        return results

    def find_desktop_file(self, handler_id: str) -> tuple[Path, DesktopFile] | None:
        items = self._sorted_cache()
        for path, desktop_file in items:
            if path.name == handler_id:
                return path, desktop_file
        for path, desktop_file in items:
            if str(path).endswith(handler_id):
                return path, desktop_file
        return None

    def find_terminal_emulators(self) -> list[ApplicationEntry]:
        results: list[ApplicationEntry] = []
        seen: set[str] = set()
        for path, desktop_file in self._sorted_cache():
            entry = desktop_file.main_entry
            if entry is None or not entry.is_terminal_emulator or path.name in seen:
                continue
            seen.add(path.name)
            results.append(ApplicationEntry.from_desktop_entry(entry, path))
        return results

    def all_mime_types(self) -> set[str]:
        mime_types: set[str] = set()
        for _path, desktop_file in self.cache.iter():
            if desktop_file.main_entry is not None:
                mime_types.update(desktop_file.main_entry.mime_types)
        return mime_types

    def _sorted_cache(self) -> list[tuple[Path, DesktopFile]]:
        return sorted(self.cache.iter(), key=lambda item: str(item[0]))


def _entries_for(
    path: Path,
    desktop_file: DesktopFile,
    *,
    priority: int,
    include_actions: bool,
) -> list[ApplicationEntry]:
    entry = desktop_file.main_entry
    if entry is None:
        return []
    entries = [ApplicationEntry.from_desktop_entry(entry, path, priority=priority)]
    if include_actions:
        for action_id, action in desktop_file.actions.items():
            entries.append(
                ApplicationEntry.from_desktop_action(
                    entry, action_id, action, path, priority=priority
                )
            )
    return entries
