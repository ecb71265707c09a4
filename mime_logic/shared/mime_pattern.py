from __future__ import annotations

from functools import lru_cache
import re
from typing import Final

_GLOB_CHARS: Final[frozenset[str]] = frozenset("*?")


def matches(pattern: str, target: str) -> bool:
    if pattern.casefold() == target.casefold():
        return True
    pattern = pattern.strip()
    target = target.strip()
    if not pattern or not target:
        return False
    pattern_norm = pattern.lower()
    target_norm = target.lower()
    if pattern_norm == target_norm:
        return True
    if "/" not in pattern_norm or "/" not in target_norm:
        return False
    if any(char in _GLOB_CHARS for char in pattern_norm):
        return _compile_glob(pattern_norm).fullmatch(target_norm) is not None
    return pattern_norm == target_norm


def has_wildcard(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    # Only `*` and `?` are special; brackets and the rest match literally.
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)
