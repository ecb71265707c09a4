from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import json
import logging
import shlex
import shutil
import sys
from typing import Final

from mime_logic.application.finder import ApplicationFinder
from mime_logic.errors import InvalidInputError, OpenitError, ResolutionError
from mime_logic.models import ApplicationEntry
from openit import telemetry
from openit.adapters.executor import ApplicationExecutor, base_command_parts
from openit.adapters.selector import SelectorRunner, is_regex_handler
from openit.commands.context import CommandContext
from openit.config import (
    AUTO_PROFILE,
    DEFAULT_ENTRY_TEMPLATE,
    PROFILE_KIND_GUI,
    PROFILE_KIND_TUI,
    AppConfig,
    MarkerConfig,
    SelectorProfile,
)
from openit.services.regex_handlers import RegexHandlerStore
from openit.target import LaunchTarget, mime_for_target, resolve_launch_target
from openit.template import TemplateEngine

TERMINAL_SCHEME_MIME: Final[str] = "x-scheme-handler/terminal"

_LOGGER = logging.getLogger(__name__)


def _stdout_is_terminal() -> bool:
    return sys.stdout.isatty()


@dataclass(frozen=True, slots=True)
class OpenOptions:
    target: str
    as_json: bool = False
    include_actions: bool = False
    auto_open_single: bool = False
    selector_command: str | None = None
    no_selector: bool = False


@dataclass(frozen=True, slots=True)
class LaunchContext:
    target: LaunchTarget
    mime_type: str
    applications: list[ApplicationEntry]

    def first_is_regex_handler(self) -> bool:
        return bool(self.applications) and is_regex_handler(self.applications[0])


@dataclass(frozen=True, slots=True)
class SelectorChoice:
    """A ready-to-run picker invocation; ``profile`` is None for a raw command."""

    command: str
    args: list[str]
    entry_template: str
    markers: MarkerConfig
    profile: str | None = None


@dataclass(slots=True)
class OpenFlow:
    ctx: CommandContext
    config: AppConfig
    regex_handlers: RegexHandlerStore
    executor: ApplicationExecutor
    selector: SelectorRunner = field(default_factory=SelectorRunner)
    is_terminal: Callable[[], bool] = _stdout_is_terminal
    which: Callable[[str], str | None] = shutil.which

    def prepare(self, options: OpenOptions) -> LaunchContext:
        target = resolve_launch_target(options.target)
        mime_type = mime_for_target(target)
        _LOGGER.info("MIME type: %s", mime_type)
        applications = self.ctx.application_finder().find_for_mime(
            mime_type, options.include_actions
        )
        handler = self.regex_handlers.find_handler(target.as_argument())
        if handler is not None:
            _LOGGER.info("Matched regex handler (priority %d): %s", handler.priority, handler.exec)
            applications.insert(0, handler.to_application())
        if not applications:
            raise ResolutionError(f"No applications found for MIME type: {mime_type}")
        telemetry.log_event(
            "open.prepared",
            mime=mime_type,
            target_kind=target.kind.value,
            candidates=len(applications),
        )
        return LaunchContext(target=target, mime_type=mime_type, applications=applications)

    def run(self, options: OpenOptions) -> str:
        context = self.prepare(options)
        if options.as_json or (self.config.json_when_piped and not self.is_terminal()):
            return render_json(context)

        selector_enabled = (
            self.config.selector.enabled or options.selector_command is not None
        ) and not options.no_selector
        if not selector_enabled:
            return self.launch(context.applications[0], context.target)

        auto_open = options.auto_open_single or self.config.auto_open_single
        if len(context.applications) == 1 and (auto_open or context.first_is_regex_handler()):
            _LOGGER.info("Auto-opening the only available application")
            return self.launch(context.applications[0], context.target)

        return self.select_and_launch(context, options.selector_command)

    def select_and_launch(self, context: LaunchContext, override: str | None) -> str:
        """Ask the picker; a raw command that fails or picks nothing falls back to a profile."""
        primary = self.primary_selector(context.target, override)
        index: int | None = None
        failure: OpenitError | None = None
        try:
            index = self.run_selector(primary, context)
        except OpenitError as exc:
            _LOGGER.info("Selector command `%s` failed: %s", primary.command, exc)
            failure = exc
        if index is None and primary.profile is None:
            fallback = self.detect_profile(context.target)
            if fallback is not None:
                _LOGGER.info("Falling back to selector profile `%s`", fallback.profile)
                telemetry.log_event("open.selector_fallback", profile=fallback.profile)
                failure = None
                index = self.run_selector(fallback, context)
        if failure is not None:
            raise failure
        if index is None:
            telemetry.log_event("open.cancelled", mime=context.mime_type)
            return "No application selected"
        return self.launch(context.applications[index], context.target)

    def run_selector(self, choice: SelectorChoice, context: LaunchContext) -> int | None:
        _LOGGER.info("Launching selector: %s", shlex.join([choice.command, *choice.args]))
        return self.selector.run(
            choice.command,
            choice.args,
            context.applications,
            choice.markers,
            choice.entry_template,
        )

    def primary_selector(self, target: LaunchTarget, override: str | None) -> SelectorChoice:
        if override is not None:
            profile = self.config.selectors.get(override)
            if profile is not None:
                return self.profile_choice(override, profile, target)
            return self.command_choice(override, target)
        if self.config.selector.command.strip():
            return self.command_choice(self.config.selector.command, target)
        name = self.config.selector.profile
        if name != AUTO_PROFILE:
            profile = self.config.selectors.get(name)
            if profile is not None:
                return self.profile_choice(name, profile, target)
            _LOGGER.info("Selector profile `%s` not found; detecting one", name)
        detected = self.detect_profile(target)
        if detected is None:
            raise ResolutionError(
                "No selector found. Install fzf or fuzzel, or set selector.command."
            )
        return detected

    def detect_profile(self, target: LaunchTarget) -> SelectorChoice | None:
        """First installed profile, those matching the terminal state first."""
        preferred = PROFILE_KIND_TUI if self.is_terminal() else PROFILE_KIND_GUI
        ordered = sorted(
            self.config.selectors.items(), key=lambda item: item[1].kind != preferred
        )
        for name, profile in ordered:
            if self.which(profile.command) is not None:
                return self.profile_choice(name, profile, target)
        return None

    def profile_choice(
        self, name: str, profile: SelectorProfile, target: LaunchTarget
    ) -> SelectorChoice:
        return SelectorChoice(
            command=profile.command,
            args=self._templates(target).render_args(profile.args),
            entry_template=profile.entry_template,
            markers=self.config.markers_for(profile),
            profile=name,
        )

    def command_choice(self, command: str, target: LaunchTarget) -> SelectorChoice:
        parts = self._templates(target).render_args(_split_command(command))
        return SelectorChoice(
            command=parts[0],
            args=parts[1:],
            entry_template=DEFAULT_ENTRY_TEMPLATE,
            markers=self.config.markers,
        )

    def launch(self, app: ApplicationEntry, target: LaunchTarget) -> str:
        launcher: list[str] | None = None
        if app.requires_terminal:
            launcher = resolve_terminal_launcher(self.ctx.application_finder())
        self.executor.execute(app, target, launcher)
        return f"Launched {app.name} ({app.desktop_file})"

    def _templates(self, target: LaunchTarget) -> TemplateEngine:
        engine = TemplateEngine()
        engine.set("file", target.display_name())
        prompt = engine.render(self.config.prompt_template)
        header = engine.render(self.config.header_template)
        return engine.set("prompt", prompt).set("header", header)


def resolve_terminal_launcher(finder: ApplicationFinder) -> list[str]:
    candidates = finder.find_for_mime(TERMINAL_SCHEME_MIME)
    if not candidates:
        candidates = finder.find_terminal_emulators()
    if not candidates:
        raise ResolutionError(
            "No terminal emulator found. Install a terminal or associate one with "
            f"{TERMINAL_SCHEME_MIME}."
        )
    terminal = next((app for app in candidates if not app.requires_terminal), candidates[0])
    _LOGGER.info("Using terminal emulator `%s` (%s)", terminal.name, terminal.desktop_file)
    return base_command_parts(terminal.exec)


def render_json(context: LaunchContext) -> str:
    payload = {
        "target": context.target.as_argument(),
        "target_kind": context.target.kind.value,
        "mimetype": context.mime_type,
        "applications": [app.to_dict() for app in context.applications],
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _split_command(text: str) -> list[str]:
    try:
        parts = shlex.split(text)
    except ValueError as exc:
        raise InvalidInputError(f"Failed to parse selector command: {exc}") from exc
    if not parts:
        raise InvalidInputError("Selector command is empty")
    return parts
