from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from openit.commands.completions import SHELLS

PROG: Final[str] = "openit"
COMMANDS: Final[frozenset[str]] = frozenset(
    {"open", "set", "add", "remove", "unset", "list", "get", "clear-cache", "completions"}
)
_OPTIONS_WITH_VALUE: Final[frozenset[str]] = frozenset({"-c", "--config", "--selector"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Open files and URIs with XDG MIME associations and edit them.",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text.")
    parser.add_argument(
        "-a", "--actions", action="store_true", help="Include desktop actions as candidates."
    )
    parser.add_argument(
        "--clear-cache", action="store_true", help="Delete the desktop file cache first."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    parser.add_argument("-c", "--config", type=Path, help="Use this config file.")
    parser.add_argument(
        "--generate-config", action="store_true", help="Write the default config file and exit."
    )
    parser.add_argument(
        "--auto-open-single",
        action="store_true",
        help="Launch directly when only one application matches.",
    )
    parser.add_argument(
        "--selector", metavar="CMD", help="Selector profile name or command to pick with."
    )
    parser.add_argument(
        "--no-selector", action="store_true", help="Launch the first candidate without asking."
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    open_parser = subparsers.add_parser("open", help="Open a file or URI (default).")
    open_parser.add_argument("target", nargs="?", help="File path or URI.")
    _add_shared_flags(open_parser, actions=True)

    for name, help_text in (
        ("set", "Replace the default handlers for a MIME type."),
        ("add", "Append a default handler for a MIME type."),
        ("remove", "Remove one handler from a MIME type."),
    ):
        edit_parser = subparsers.add_parser(name, help=help_text)
        edit_parser.add_argument("mime", metavar="MIME_OR_EXT")
        edit_parser.add_argument("handler", metavar="HANDLER")
        _add_expand_flag(edit_parser)

    unset_parser = subparsers.add_parser("unset", help="Remove every handler for a MIME type.")
    unset_parser.add_argument("mime", metavar="MIME_OR_EXT")
    _add_expand_flag(unset_parser)

    list_parser = subparsers.add_parser("list", help="Show the user's mimeapps.list.")
    _add_shared_flags(list_parser, actions=False)

    get_parser = subparsers.add_parser("get", help="Show handlers for a MIME type or pattern.")
    get_parser.add_argument("mime", metavar="MIME_OR_EXT")
    _add_shared_flags(get_parser, actions=True)

    subparsers.add_parser("clear-cache", help="Delete the desktop file cache.")

    completions_parser = subparsers.add_parser("completions", help="Print shell completions.")
    completions_parser.add_argument("shell", choices=SHELLS)
    completions_parser.add_argument("-o", "--output", type=Path, help="Write to this file.")
    return parser


def normalize_argv(argv: Sequence[str]) -> list[str]:
    """Insert ``open`` before a bare target so ``openit FILE`` works."""
    args = list(argv)
    index = 0
    while index < len(args):
        token = args[index]
        if token == "--":
            if index + 1 < len(args):
                return args[:index] + ["open"] + args[index:]
            return args
        if token.startswith("-") and token != "-":
            if token in _OPTIONS_WITH_VALUE:
                index += 1
            index += 1
            continue
        if token in COMMANDS:
            return args
        return args[:index] + ["open"] + args[index:]
    return args


def _add_shared_flags(parser: argparse.ArgumentParser, *, actions: bool) -> None:
    # SUPPRESS keeps a flag given before the command from being reset here.
    parser.add_argument(
        "--json", action="store_true", default=argparse.SUPPRESS, help="Print JSON."
    )
    if actions:
        parser.add_argument(
            "-a",
            "--actions",
            action="store_true",
            default=argparse.SUPPRESS,
            help="Include desktop actions.",
        )


def _add_expand_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--expand-wildcards",
        action="store_true",
        help="Apply a `*` pattern to every matching key already configured.",
    )
