from __future__ import annotations

import mimetypes
import re
from typing import Final

from mime_logic.errors import InvalidInputError

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9!#$&^_.+-]+$")


def normalize_mime_input(text: str) -> str:
    """Turn a MIME type, wildcard pattern or file extension into a MIME key."""
    trimmed = text.strip()
    if not trimmed:
        raise InvalidInputError("MIME type cannot be empty")
    if "*" in trimmed:
        return trimmed

    if "/" in trimmed:
        raw_type, _, raw_subtype = trimmed.partition("/")
        type_part = raw_type.strip().lower()
        subtype = raw_subtype.strip().lower()
        if not type_part or not subtype:
            raise InvalidInputError(f"Invalid MIME type: {text}")
        guessed = _guess_from_extension(subtype)
        if guessed is not None and guessed.partition("/")[0] == type_part:
            return guessed
        if _TOKEN_RE.match(type_part) and _TOKEN_RE.match(subtype):
            return f"{type_part}/{subtype}"
        raise InvalidInputError(f"Invalid MIME type: {text}")

    guessed = _guess_from_extension(trimmed.lstrip("."))
    if guessed is None:
        raise InvalidInputError(f"Unable to resolve MIME type for extension: {text}")
    return guessed


def _guess_from_extension(extension: str) -> str | None:
    if not extension or "/" in extension:
        return None
    mime, _encoding = mimetypes.guess_type(f"file.{extension}", strict=False)
    return mime
