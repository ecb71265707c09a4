from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from xdg.DesktopEntry import DesktopEntry as XdgDesktopEntry
from xdg.Exceptions import ParsingError

from mime_logic.domain.models import DesktopAction, DesktopEntry, DesktopFile
from mime_logic.errors import DesktopParseError

ACTION_GROUP_PREFIX: Final[str] = "Desktop Action "

_LOGGER = logging.getLogger(__name__)


def parse_desktop_file(path: Path) -> DesktopFile:
    raw = XdgDesktopEntry()
    raw.filename = str(path)
    try:
        raw.parse(str(path))
    except ParsingError as exc:
        raise DesktopParseError(f"{path}: {exc.msg}") from exc
    except OSError as exc:
        raise DesktopParseError(f"Failed to read desktop file {path}: {exc}") from exc

    main_entry = _build_entry(raw, raw.defaultGroup, path)
    actions: dict[str, DesktopAction] = {}
    for group in raw.groups():
        if not group.startswith(ACTION_GROUP_PREFIX):
            continue
        action_id = group[len(ACTION_GROUP_PREFIX) :].strip()
        if not action_id:
            continue
        action = _build_action(raw, group)
        if action is None:
            _LOGGER.debug("Skipping incomplete action %r in %s", action_id, path)
            continue
        actions[action_id] = action
    return DesktopFile(main_entry=main_entry, actions=actions)


def parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def parse_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(";") if item.strip())


def _build_entry(raw: XdgDesktopEntry, group: str, path: Path) -> DesktopEntry:
    name = _text(raw, "Name", group, localized=True)
    if not name:
        raise DesktopParseError(f"{path}: Missing Name field")
    exec_line = _text(raw, "Exec", group)
    if not exec_line:
        raise DesktopParseError(f"{path}: Missing Exec field")
    return DesktopEntry(
        name=name,
        exec=exec_line,
        comment=_text(raw, "Comment", group, localized=True) or None,
        icon=_text(raw, "Icon", group) or None,
        mime_types=parse_list(_text(raw, "MimeType", group)),
        categories=parse_list(_text(raw, "Categories", group)),
        actions=parse_list(_text(raw, "Actions", group)),
        no_display=parse_bool(_text(raw, "NoDisplay", group)),
        hidden=parse_bool(_text(raw, "Hidden", group)),
        terminal=parse_bool(_text(raw, "Terminal", group)),
    )


def _build_action(raw: XdgDesktopEntry, group: str) -> DesktopAction | None:
    name = _text(raw, "Name", group, localized=True)
    exec_line = _text(raw, "Exec", group)
    if not name or not exec_line:
        return None
    return DesktopAction(
        name=name,
        exec=exec_line,
        icon=_text(raw, "Icon", group) or None,
    )


def _text(raw: XdgDesktopEntry, key: str, group: str, *, localized: bool = False) -> str:
    value = raw.get(key, group=group, locale=localized)
    if not isinstance(value, str):
        return ""
    return value.strip()
