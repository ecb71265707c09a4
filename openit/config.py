from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Final

from mime_logic.errors import ConfigError
from openit.platform.paths import XdgDirs

CONFIG_FILE_NAME: Final[str] = "config.json"
AUTO_PROFILE: Final[str] = "auto"
PROFILE_KIND_TUI: Final[str] = "tui"
PROFILE_KIND_GUI: Final[str] = "gui"
PROFILE_KINDS: Final[tuple[str, ...]] = (PROFILE_KIND_TUI, PROFILE_KIND_GUI)
DEFAULT_FZF_ARGS: Final[tuple[str, ...]] = (
    "--prompt",
    "{prompt}",
    "--height=40%",
    "--reverse",
    "--header={header}",
    "--cycle",
)
DEFAULT_FUZZEL_ARGS: Final[tuple[str, ...]] = (
    "--dmenu",
    "--prompt",
    "{prompt}",
    "--index",
    "--log-level=info",
)
DEFAULT_ENTRY_TEMPLATE: Final[str] = "{marker}{name}{comment}"
DEFAULT_TERM_EXEC_ARGS: Final[str] = "-e"
DEFAULT_MARKER_DEFAULT: Final[str] = "★ "
DEFAULT_MARKER_XDG: Final[str] = "▶ "
DEFAULT_MARKER_AVAILABLE: Final[str] = "  "
DEFAULT_PROMPT_TEMPLATE: Final[str] = "Open '{file}' with: "
DEFAULT_HEADER_TEMPLATE: Final[str] = "★=Default  ▶=XDG Associated  (space)=Available"


@dataclass(frozen=True, slots=True)
class MarkerConfig:
    default: str
    xdg: str
    available: str


@dataclass(frozen=True, slots=True)
class SelectorProfile:
    """A named picker: ``kind`` says whether it needs a terminal (tui) or not (gui)."""

    command: str
    args: tuple[str, ...]
    kind: str = PROFILE_KIND_TUI
    entry_template: str = DEFAULT_ENTRY_TEMPLATE
    markers: MarkerConfig | None = None


@dataclass(frozen=True, slots=True)
class SelectorConfig:
    enabled: bool
    profile: str
    command: str


@dataclass(frozen=True, slots=True)
class AppConfig:
    selector: SelectorConfig
    selectors: dict[str, SelectorProfile]
    markers: MarkerConfig
    term_exec_args: str
    app_launch_prefix: str
    expand_wildcards: bool
    auto_open_single: bool
    json_when_piped: bool
    prompt_template: str
    header_template: str

    def markers_for(self, profile: SelectorProfile | None) -> MarkerConfig:
        if profile is not None and profile.markers is not None:
            return profile.markers
        return self.markers


def config_path(dirs: XdgDirs) -> Path:
    return dirs.app_config_dir / CONFIG_FILE_NAME


def load_config(path: Path | None = None, *, dirs: XdgDirs | None = None) -> AppConfig:
    """Load the user's config.

    The default location is best-effort: a missing or broken file yields the
    defaults. A path passed explicitly (``--config``) must be readable.
    """
    if path is not None:
        try:
            raw_data = path.read_text(encoding="utf-8")
            payload: object = json.loads(raw_data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Failed to load configuration from {path}: {exc}") from exc
        return _parse_config(payload)
    default_path = config_path(dirs or XdgDirs.from_env())
    if not default_path.exists():
        return default_config()
    try:
        raw_data = default_path.read_text(encoding="utf-8")
        payload = json.loads(raw_data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return default_config()
    return _parse_config(payload)


def save_config(
    config: AppConfig, path: Path | None = None, *, dirs: XdgDirs | None = None
) -> Path:
    target = path if path is not None else config_path(dirs or XdgDirs.from_env())
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = config_to_dict(config)
    data = json.dumps(payload, ensure_ascii=False, indent=2)
    target.write_text(data + "\n", encoding="utf-8")
    return target


def default_profiles() -> dict[str, SelectorProfile]:
    return {
        "fzf": SelectorProfile(command="fzf", args=DEFAULT_FZF_ARGS, kind=PROFILE_KIND_TUI),
        "fuzzel": SelectorProfile(
            command="fuzzel",
            args=DEFAULT_FUZZEL_ARGS,
            kind=PROFILE_KIND_GUI,
            markers=MarkerConfig(default="★ ", xdg="▶ ", available="   "),
        ),
    }


def default_config() -> AppConfig:
    return AppConfig(
        selector=SelectorConfig(enabled=True, profile=AUTO_PROFILE, command=""),
        selectors=default_profiles(),
        markers=MarkerConfig(
            default=DEFAULT_MARKER_DEFAULT,
            xdg=DEFAULT_MARKER_XDG,
            available=DEFAULT_MARKER_AVAILABLE,
        ),
        term_exec_args=DEFAULT_TERM_EXEC_ARGS,
        app_launch_prefix="",
        expand_wildcards=False,
        auto_open_single=False,
        json_when_piped=False,
        prompt_template=DEFAULT_PROMPT_TEMPLATE,
        header_template=DEFAULT_HEADER_TEMPLATE,
    )


def config_to_dict(config: AppConfig) -> dict[str, object]:
    return {
        "selector": {
            "enabled": config.selector.enabled,
            "profile": config.selector.profile,
            "command": config.selector.command,
        },
        "selectors": {
            name: _profile_to_dict(profile) for name, profile in config.selectors.items()
        },
        "markers": _markers_to_dict(config.markers),
        "term_exec_args": config.term_exec_args,
        "app_launch_prefix": config.app_launch_prefix,
        "expand_wildcards": config.expand_wildcards,
        "auto_open_single": config.auto_open_single,
        "json_when_piped": config.json_when_piped,
        "prompt_template": config.prompt_template,
        "header_template": config.header_template,
    }


def _profile_to_dict(profile: SelectorProfile) -> dict[str, object]:
    payload: dict[str, object] = {
        "command": profile.command,
        "args": list(profile.args),
        "kind": profile.kind,
        "entry_template": profile.entry_template,
    }
    if profile.markers is not None:
        payload["markers"] = _markers_to_dict(profile.markers)
    return payload


def _markers_to_dict(markers: MarkerConfig) -> dict[str, str]:
    return {"default": markers.default, "xdg": markers.xdg, "available": markers.available}


def _parse_config(payload: object) -> AppConfig:
    defaults = default_config()
    payload_dict = _get_dict(payload)
    if payload_dict is None:
        return defaults
    selector_data = _get_dict(payload_dict.get("selector")) or {}

    selector = SelectorConfig(
        enabled=_get_bool(selector_data.get("enabled"), defaults.selector.enabled),
        profile=_get_str(selector_data.get("profile"), defaults.selector.profile),
        command=_get_str(
            selector_data.get("command"), defaults.selector.command, allow_empty=True
        ),
    )
    return AppConfig(
        selector=selector,
        selectors=_parse_profiles(payload_dict.get("selectors"), defaults.selectors),
        markers=_parse_markers(payload_dict.get("markers"), defaults.markers),
        term_exec_args=_get_str(
            payload_dict.get("term_exec_args"), defaults.term_exec_args, allow_empty=True
        ),
        app_launch_prefix=_get_str(
            payload_dict.get("app_launch_prefix"), defaults.app_launch_prefix, allow_empty=True
        ),
        expand_wildcards=_get_bool(payload_dict.get("expand_wildcards"), defaults.expand_wildcards),
        auto_open_single=_get_bool(payload_dict.get("auto_open_single"), defaults.auto_open_single),
        json_when_piped=_get_bool(payload_dict.get("json_when_piped"), defaults.json_when_piped),
        prompt_template=_get_str(payload_dict.get("prompt_template"), defaults.prompt_template),
        header_template=_get_str(payload_dict.get("header_template"), defaults.header_template),
    )


def _parse_profiles(
    value: object, defaults: dict[str, SelectorProfile]
) -> dict[str, SelectorProfile]:
    profiles = dict(defaults)
    for name, raw_profile in (_get_dict(value) or {}).items():
        profile_data = _get_dict(raw_profile)
        if profile_data is None:
            continue
        base = defaults.get(name)
        command = _get_str(profile_data.get("command"), base.command if base else "")
        if not command:
            continue
        kind = _get_str(profile_data.get("kind"), base.kind if base else PROFILE_KIND_TUI)
        markers = base.markers if base else None
        raw_markers = profile_data.get("markers")
        if raw_markers is not None:
            markers = _parse_markers(raw_markers, markers)
        profiles[name] = SelectorProfile(
            command=command,
            args=_get_str_tuple(profile_data.get("args"), base.args if base else ()),
            kind=kind if kind in PROFILE_KINDS else PROFILE_KIND_TUI,
            entry_template=_get_str(
                profile_data.get("entry_template"),
                base.entry_template if base else DEFAULT_ENTRY_TEMPLATE,
            ),
            markers=markers,
        )
    return profiles


def _parse_markers(value: object, fallback: MarkerConfig | None) -> MarkerConfig:
    base = fallback or MarkerConfig(
        default=DEFAULT_MARKER_DEFAULT,
        xdg=DEFAULT_MARKER_XDG,
        available=DEFAULT_MARKER_AVAILABLE,
    )
    marker_data = _get_dict(value) or {}
    return MarkerConfig(
        default=_get_str(marker_data.get("default"), base.default, allow_empty=True),
        xdg=_get_str(marker_data.get("xdg"), base.xdg, allow_empty=True),
        available=_get_str(marker_data.get("available"), base.available, allow_empty=True),
    )


def _get_dict(value: object | None) -> dict[str, object] | None:
    if isinstance(value, dict):
        output: dict[str, object] = {}
        for raw_key, raw_item in value.items():
            if isinstance(raw_key, str):
                output[raw_key] = raw_item
        return output
    return None


def _get_str(value: object, fallback: str, *, allow_empty: bool = False) -> str:
    if isinstance(value, str) and (allow_empty or value.strip()):
        return value
    return fallback


def _get_bool(value: object, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    return fallback


def _get_str_tuple(value: object, fallback: tuple[str, ...]) -> tuple[str, ...]:
    if not isinstance(value, list):
        return fallback
    return tuple(item for item in value if isinstance(item, str))
