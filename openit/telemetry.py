from __future__ import annotations

import atexit
from datetime import datetime, timezone
import json
import logging
import logging.handlers
import os
from pathlib import Path
import queue
import sys
from typing import Final

_LOGGER_NAME: Final[str] = "openit.telemetry"
_LOG_DIR_ENV: Final[str] = "OPENIT_LOG_DIR"
_LOG_ENABLED_ENV: Final[str] = "OPENIT_LOGGING"
_LOG_FILE_NAME: Final[str] = "openit.log"
_MAX_LOG_BYTES: Final[int] = 1_000_000
_listener: logging.handlers.QueueListener | None = None
_console_handler: logging.Handler | None = None


def setup(*, reset: bool) -> None:
    """Start the JSON-lines event log under $XDG_STATE_HOME/openit (or $OPENIT_LOG_DIR)."""
    global _listener
    if _listener is not None or not _is_enabled():
        return
    path = _log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            mode="w" if reset else "a",
            maxBytes=_MAX_LOG_BYTES,
            backupCount=1,
            encoding="utf-8",
        )
    except OSError:
        return
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    record_queue: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.addHandler(logging.handlers.QueueHandler(record_queue))
    _listener = logging.handlers.QueueListener(record_queue, file_handler)
    _listener.start()
    atexit.register(shutdown)


def enable_console(*, verbose: bool) -> None:
    """Mirror library debug output to stderr when running with --verbose."""
    global _console_handler
    if not verbose or _console_handler is not None:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    _console_handler = handler


def shutdown() -> None:
    global _listener, _console_handler
    if _listener is not None:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        logging.getLogger(_LOGGER_NAME).handlers.clear()
        _listener = None
    if _console_handler is not None:
        logging.getLogger().removeHandler(_console_handler)
        _console_handler = None


def log_event(event: str, **fields: object) -> None:
    _emit(logging.INFO, event, fields)


def log_error(event: str, exc: BaseException | None = None, **fields: object) -> None:
    if exc is not None:
        fields = {"error_type": exc.__class__.__name__, "error": str(exc), **fields}
    _emit(logging.ERROR, event, fields)


def _emit(level: int, event: str, fields: dict[str, object]) -> None:
    if _listener is None:
        setup(reset=False)
    if _listener is None:
        return
    payload: dict[str, object] = {
        "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "event": event,
    }
    for key, value in fields.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            payload[key] = value
        else:
            payload[key] = str(value)
    logging.getLogger(_LOGGER_NAME).log(
        level, json.dumps(payload, ensure_ascii=True, separators=(",", ":"))
    )


def _log_path() -> Path:
    override = os.environ.get(_LOG_DIR_ENV, "").strip()
    if override:
        return Path(override) / _LOG_FILE_NAME
    state_home = os.environ.get("XDG_STATE_HOME", "").strip()
    base = Path(state_home) if state_home else Path.home() / ".local" / "state"
    return base / "openit" / _LOG_FILE_NAME


def _is_enabled() -> bool:
    return os.environ.get(_LOG_ENABLED_ENV, "1").strip() != "0"
