from __future__ import annotations

import argparse
from collections.abc import Sequence
import os
import sys

from mime_logic.errors import OpenitError
from openit import telemetry
from openit.adapters.executor import ApplicationExecutor
from openit.application.cache_flow import clear_cache
from openit.cli import PROG, build_parser, normalize_argv
from openit.commands.completions import completions_command
from openit.commands.context import CommandContext
from openit.commands.edit import add_command, remove_command, set_command, unset_command
from openit.commands.get import get_command
from openit.commands.listing import list_command
from openit.commands.open import OpenFlow, OpenOptions
from openit.config import default_config, load_config, save_config
from openit.services.regex_handlers import RegexHandlerStore


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    raw_args = sys.argv[1:] if argv is None else list(argv)
    args = parser.parse_args(normalize_argv(raw_args))
    reset_flag = os.environ.pop("OPENIT_LOG_RESET", "").strip()
    telemetry.setup(reset=reset_flag == "1")
    telemetry.enable_console(verbose=args.verbose)
    telemetry.log_event("main.start", command=args.command or "open")
    try:
        output = dispatch(args, parser, CommandContext.from_env())
    except (OpenitError, OSError) as exc:
        telemetry.log_error("main.failed", exc, command=args.command or "open")
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if output:
        print(output)
    telemetry.log_event("main.exit", command=args.command or "open")
    return 0


def dispatch(
    args: argparse.Namespace,
    parser: argparse.ArgumentParser,
    ctx: CommandContext,
) -> str:
    messages: list[str] = []
    if args.generate_config:
        path = save_config(default_config(), args.config, dirs=ctx.dirs)
        return f"Wrote default configuration to {path}"
    if args.clear_cache or args.command == "clear-cache":
        messages.append("Cache cleared" if clear_cache(ctx.dirs) else "No cache to clear")
        if args.command == "clear-cache":
            return "\n".join(messages)

    command = args.command or "open"
    if command == "open":
        target = getattr(args, "target", None)
        if target is None:
            if messages:
                return "\n".join(messages)
            parser.error(
                "a target argument is required unless using --clear-cache or --generate-config"
            )
        messages.append(_open(args, ctx, target))
    elif command in ("set", "add", "remove"):
        expand = args.expand_wildcards or load_config(args.config, dirs=ctx.dirs).expand_wildcards
        if command == "set":
            messages.append(set_command(ctx, args.mime, args.handler, expand_wildcards=expand))
        elif command == "add":
            messages.append(add_command(ctx, args.mime, args.handler, expand_wildcards=expand))
        else:
            messages.append(remove_command(ctx, args.mime, args.handler, expand_wildcards=expand))
    elif command == "unset":
        expand = args.expand_wildcards or load_config(args.config, dirs=ctx.dirs).expand_wildcards
        messages.append(unset_command(ctx, args.mime, expand_wildcards=expand))
    elif command == "list":
        messages.append(list_command(ctx, as_json=args.json))
    elif command == "get":
        messages.append(
            get_command(ctx, args.mime, as_json=args.json, include_actions=args.actions)
        )
    elif command == "completions":
        messages.append(completions_command(parser, args.shell, output=args.output, prog=PROG))
    return "\n".join(message for message in messages if message)


def _open(args: argparse.Namespace, ctx: CommandContext, target: str) -> str:
    config = load_config(args.config, dirs=ctx.dirs)
    regex_handlers = RegexHandlerStore.load(RegexHandlerStore.default_path(ctx.dirs))
    flow = OpenFlow(
        ctx=ctx,
        config=config,
        regex_handlers=regex_handlers,
        executor=ApplicationExecutor(
            launch_prefix=config.app_launch_prefix,
            term_exec_args=config.term_exec_args,
        ),
    )
    return flow.run(
        OpenOptions(
            target=target,
            as_json=args.json,
            include_actions=args.actions,
            auto_open_single=args.auto_open_single,
            selector_command=args.selector,
            no_selector=args.no_selector,
        )
    )


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
