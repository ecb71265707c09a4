from __future__ import annotations

import json
from typing import Final

from mime_logic.application.finder import ApplicationFinder
from mime_logic.models import ApplicationEntry
from mime_logic.shared.mime_pattern import has_wildcard, matches
from openit.commands.context import CommandContext

LEGEND: Final[str] = "Legend: ★=Default  ▶=XDG Associated  (space)=Available"


def get_command(ctx: CommandContext, mime: str, *, as_json: bool, include_actions: bool) -> str:
    pattern = ctx.normalize_mime_input(mime)
    finder = ctx.application_finder()
    if has_wildcard(pattern):
        return _wildcard_query(finder, pattern, as_json=as_json, include_actions=include_actions)
    return _exact_query(finder, pattern, as_json=as_json, include_actions=include_actions)


def _exact_query(
    finder: ApplicationFinder, mime: str, *, as_json: bool, include_actions: bool
) -> str:
    applications = finder.find_for_mime(mime, include_actions)
    if as_json:
        payload = {
            "mimetype": mime,
            "xdg_associations": finder.associations.get_associations(mime),
            "applications": [app.to_dict() for app in applications],
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    lines = [f"MIME type: {mime}"]
    if not applications:
        lines.append("No applications found for this MIME type.")
        return "\n".join(lines)
    lines.append("")
    lines.append(f"Available applications ({len(applications)}):")
    for index, app in enumerate(applications):
        lines.append(f"{_prefix(app)}{_title(app)}")
        if app.comment:
            lines.append(f"    {app.comment}")
        lines.append(f"    Exec: {app.exec}")
        lines.append(f"    Desktop file: {app.desktop_file}")
        if index < len(applications) - 1:
            lines.append("")
    lines.append("")
    lines.append(LEGEND)
    return "\n".join(lines)


def _wildcard_query(
    finder: ApplicationFinder, pattern: str, *, as_json: bool, include_actions: bool
) -> str:
    matching = sorted(mime for mime in finder.all_mime_types() if matches(pattern, mime))
    results: dict[str, list[ApplicationEntry]] = {}
    for mime in matching:
        applications = finder.find_for_mime(mime, include_actions)
        if applications:
            results[mime] = applications

    if as_json:
        payload = {
            "pattern": pattern,
            "matching_mimes": matching,
            "results": {
                mime: [app.to_dict() for app in applications]
                for mime, applications in results.items()
            },
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    lines = [f"Pattern: {pattern}", f"Matching MIME types: {len(matching)}"]
    if not matching:
        lines.append("No MIME types match this pattern.")
        return "\n".join(lines)
    for mime, applications in results.items():
        lines.append("")
        lines.append(f"{mime} ({len(applications)} applications):")
        for app in applications:
            lines.append(f"  {_prefix(app)}{_title(app)}")
    lines.append("")
    lines.append(LEGEND)
    return "\n".join(lines)


def _prefix(app: ApplicationEntry) -> str:
    if app.is_default:
        return "★ "
    if app.is_xdg:
        return "▶ "
    return "  "


def _title(app: ApplicationEntry) -> str:
    if app.action_id is None:
        return app.name
    return f"{app.name} [action: {app.action_id}]"
