from __future__ import annotations

import json

from mime_logic.mimeapps import DesktopList
from openit.commands.context import CommandContext


def list_command(ctx: CommandContext, *, as_json: bool) -> str:
    apps = ctx.load_mimeapps()
    if as_json:
        payload = {
            "default_apps": _section_payload(apps.default_apps()),
            "added_associations": _section_payload(apps.added_associations()),
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)
    return "\n".join(
        f"{mime}: {'; '.join(handlers)}" for mime, handlers in apps.default_apps().items()
    )


def _section_payload(section: dict[str, DesktopList]) -> list[dict[str, object]]:
    return [{"mime": mime, "handlers": handlers.to_list()} for mime, handlers in section.items()]
