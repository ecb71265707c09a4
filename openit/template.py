from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import re
from typing import Final

_PLACEHOLDER_RE: Final[re.Pattern[str]] = re.compile(r"\{\{|\{([^}]*)\}")


def _default_variables() -> dict[str, str]:
    return {}


@dataclass(slots=True)
class TemplateEngine:
    """Substitutes ``{name}`` placeholders; unknown names and ``{{`` stay literal."""

    variables: dict[str, str] = field(default_factory=_default_variables)

    def set(self, key: str, value: str) -> "TemplateEngine":
        self.variables[key] = value
        return self

    def get(self, key: str) -> str | None:
        return self.variables.get(key)

    def clear(self) -> None:
        self.variables.clear()

    def render(self, template: str) -> str:
        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if name is None or name not in self.variables:
                return match.group(0)
            return self.variables[name]

        return _PLACEHOLDER_RE.sub(replace, template)

    def render_args(self, args: Iterable[str]) -> list[str]:
        return [self.render(arg) for arg in args]
