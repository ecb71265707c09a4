from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Final

SHELLS: Final[tuple[str, ...]] = ("bash", "zsh", "fish")


@dataclass(frozen=True, slots=True)
class CommandSpec:
    name: str
    help: str
    options: tuple[str, ...]
    actions: tuple[argparse.Action, ...]


def completions_command(
    parser: argparse.ArgumentParser,
    shell: str,
    *,
    output: Path | None = None,
    prog: str = "openit",
) -> str:
    script = render_completions(parser, shell, prog=prog)
    if output is None:
        return script.rstrip("\n")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(script, encoding="utf-8")
    return f"Generated {shell} completions at {output}"


def render_completions(parser: argparse.ArgumentParser, shell: str, *, prog: str) -> str:
    global_options = _option_strings(_parser_actions(parser))
    commands = _subcommands(parser)
    if shell == "bash":
        return _bash(prog, global_options, commands)
    if shell == "zsh":
        return _zsh(prog, global_options, commands)
    if shell == "fish":
        return _fish(prog, parser, commands)
    raise ValueError(f"Unsupported shell: {shell}")


# argparse has no public API for walking a parser. The two helpers below are
# the only code reading ArgumentParser._actions, _SubParsersAction and
# _choices_actions.
def _parser_actions(parser: argparse.ArgumentParser) -> tuple[argparse.Action, ...]:
    return tuple(parser._actions)


def _subparsers(
    parser: argparse.ArgumentParser,
) -> list[tuple[str, str, argparse.ArgumentParser]]:
    found: list[tuple[str, str, argparse.ArgumentParser]] = []
    for action in parser._actions:
        if not isinstance(action, argparse._SubParsersAction):
            continue
        helps = {choice.dest: choice.help or "" for choice in action._choices_actions}
        for name, subparser in action.choices.items():
            found.append((name, helps.get(name, ""), subparser))
    return found


def _option_strings(actions: tuple[argparse.Action, ...]) -> tuple[str, ...]:
    options: list[str] = []
    for action in actions:
        options.extend(action.option_strings)
    return tuple(options)


def _subcommands(parser: argparse.ArgumentParser) -> list[CommandSpec]:
    specs: list[CommandSpec] = []
    for name, help_text, subparser in _subparsers(parser):
        actions = _parser_actions(subparser)
        specs.append(
            CommandSpec(
                name=name, help=help_text, options=_option_strings(actions), actions=actions
            )
        )
    return specs


def _function_name(prog: str) -> str:
    return "_" + prog.replace("-", "_")


def _bash(prog: str, global_options: tuple[str, ...], commands: list[CommandSpec]) -> str:
    func = _function_name(prog)
    names = " ".join(spec.name for spec in commands)
    lines = [
        f"{func}() {{",
        '    local cur="${COMP_WORDS[COMP_CWORD]}"',
        '    local cmd=""',
        "    local word",
        '    for word in "${COMP_WORDS[@]:1:COMP_CWORD-1}"; do',
        "        case \"$word\" in",
        f"            {'|'.join(spec.name for spec in commands)}) cmd=\"$word\"; break ;;",
        "        esac",
        "    done",
        '    case "$cmd" in',
    ]
    for spec in commands:
        lines.append(f"        {spec.name})")
        words = " ".join(spec.options)
        lines.append(f'            COMPREPLY=($(compgen -W "{words}" -- "$cur"))')
        lines.append('            [[ "$cur" != -* ]] && COMPREPLY+=($(compgen -f -- "$cur"))')
        lines.append("            return ;;")
    lines.extend(
        [
            "    esac",
            '    if [[ "$cur" == -* ]]; then',
            f"        COMPREPLY=($(compgen -W \"{' '.join(global_options)}\" -- \"$cur\"))",
            "    else",
            f"        COMPREPLY=($(compgen -W \"{names}\" -- \"$cur\") $(compgen -f -- \"$cur\"))",
            "    fi",
            "}",
            f"complete -o filenames -F {func} {prog}",
            "",
        ]
    )
    return "\n".join(lines)


def _zsh(prog: str, global_options: tuple[str, ...], commands: list[CommandSpec]) -> str:
    func = _function_name(prog)
    lines = [
        f"#compdef {prog}",
        "",
        f"{func}() {{",
        "    local -a commands",
        "    commands=(",
    ]
    for spec in commands:
        lines.append(f"        '{spec.name}:{_quote_zsh(spec.help)}'")
    lines.extend(
        [
            "    )",
            "    if (( CURRENT == 2 )); then",
            "        _describe 'command' commands",
            f"        compadd -- {' '.join(global_options)}",
            "        _files",
            "        return",
            "    fi",
            "    case $words[2] in",
        ]
    )
    for spec in commands:
        lines.append(f"        {spec.name}) compadd -- {' '.join(spec.options)}; _files ;;")
    lines.extend(
        [
            "        *) _files ;;",
            "    esac",
            "}",
            "",
            f'{func} "$@"',
            "",
        ]
    )
    return "\n".join(lines)


def _fish(prog: str, parser: argparse.ArgumentParser, commands: list[CommandSpec]) -> str:
    names = " ".join(spec.name for spec in commands)
    top_level = f"not __fish_seen_subcommand_from {names}"
    lines = [f"complete -c {prog} -f"]
    for action in _parser_actions(parser):
        lines.extend(_fish_option(prog, action, condition=top_level))
    for spec in commands:
        lines.append(
            f"complete -c {prog} -n '{top_level}' -a {spec.name} -d '{_quote_fish(spec.help)}'"
        )
    for spec in commands:
        seen = f"__fish_seen_subcommand_from {spec.name}"
        for sub_action in spec.actions:
            lines.extend(_fish_option(prog, sub_action, condition=seen))
    lines.append(f"complete -c {prog} -F")
    lines.append("")
    return "\n".join(lines)


def _fish_option(prog: str, action: argparse.Action, *, condition: str) -> list[str]:
    if not action.option_strings:
        return []
    flags: list[str] = []
    for option in action.option_strings:
        if option.startswith("--"):
            flags.append(f"-l {option[2:]}")
        else:
            flags.append(f"-s {option[1:]}")
    description = _quote_fish(action.help or "")
    return [f"complete -c {prog} -n '{condition}' {' '.join(flags)} -d '{description}'"]


def _quote_zsh(text: str) -> str:
    return text.replace("'", "'\\''").replace(":", "\\:")


def _quote_fish(text: str) -> str:
    return text.replace("\\", "\\\\").replace("'", "\\'")
