from __future__ import annotations

from mime_logic.errors import InvalidInputError
from openit import telemetry
from openit.commands.context import CommandContext


def set_command(ctx: CommandContext, mime: str, handler: str, *, expand_wildcards: bool) -> str:
    pattern = ctx.normalize_mime_input(mime)
    ctx.ensure_handler_exists(handler)
    apps = ctx.load_mimeapps()
    apps.set_handler(pattern, [handler], expand_wildcards)
    ctx.save_mimeapps(apps)
    telemetry.log_event("mimeapps.set", mime=pattern, handler=handler)
    return f"Set default handler for {pattern} -> {handler}"


def add_command(ctx: CommandContext, mime: str, handler: str, *, expand_wildcards: bool) -> str:
    pattern = ctx.normalize_mime_input(mime)
    ctx.ensure_handler_exists(handler)
    apps = ctx.load_mimeapps()
    apps.add_handler(pattern, handler, expand_wildcards)
    ctx.save_mimeapps(apps)
    telemetry.log_event("mimeapps.add", mime=pattern, handler=handler)
    return f"Added handler {handler} for {pattern}"


def remove_command(
    ctx: CommandContext, mime: str, handler: str, *, expand_wildcards: bool
) -> str:
    pattern = ctx.normalize_mime_input(mime)
    if not handler.strip():
        raise InvalidInputError("Handler identifier cannot be empty")
    apps = ctx.load_mimeapps()
    apps.remove_handler(pattern, handler, expand_wildcards)
    ctx.save_mimeapps(apps)
    telemetry.log_event("mimeapps.remove", mime=pattern, handler=handler)
    return f"Removed handler {handler} from {pattern}"


def unset_command(ctx: CommandContext, mime: str, *, expand_wildcards: bool) -> str:
    pattern = ctx.normalize_mime_input(mime)
    apps = ctx.load_mimeapps()
    apps.remove_handler(pattern, None, expand_wildcards)
    ctx.save_mimeapps(apps)
    telemetry.log_event("mimeapps.unset", mime=pattern)
    return f"Unset handlers for {pattern}"
