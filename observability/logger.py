"""Event logging for command center requests.

Every event goes out twice: a short ``key=value`` line for people reading the
console, and (when file logging is on) a JSON document for later analysis.
Both travel through the ``command_center`` logger; a record attribute decides
which handler accepts it.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any, Callable

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/command_center.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

LINE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
LINE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Order of the optional fields on a console line; anything else is JSON only.
LINE_KEYS = (
    "scope",
    "view",
    "state",
    "tasks",
    "needs_action",
    "blocked",
    "domain",
    "record_id",
    "reason",
    "ms",
    "error",
)

_logger = logging.getLogger("command_center")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


def _is_json(record: logging.LogRecord) -> bool:
    return getattr(record, "is_json", False) is True


def _is_line(record: logging.LogRecord) -> bool:
    return not _is_json(record)


def _line_log_path(path: str) -> str:
    """``logs/x.log`` -> ``logs/x-human.log``; other names get the suffix appended."""
    stem = path[: -len(".log")] if path.endswith(".log") else path
    return f"{stem}-human.log"


def _attach(handler: logging.Handler, fmt: logging.Formatter, accept: Callable[[logging.LogRecord], bool]) -> None:
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(fmt)
    handler.addFilter(accept)
    _logger.addHandler(handler)


def _rotating(path: str) -> logging.Handler:
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)


def _ensure_handlers() -> None:
    if _logger.handlers:
        return

    line_fmt = logging.Formatter(LINE_FORMAT, datefmt=LINE_DATEFMT)
    _attach(logging.StreamHandler(stream=sys.stdout), line_fmt, _is_line)
    if not ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    _attach(_rotating(LOG_FILE), logging.Formatter("%(message)s"), _is_json)
    _attach(_rotating(_line_log_path(LOG_FILE)), line_fmt, _is_line)


def _format_human(evt: dict[str, Any]) -> str:
    parts = [f"user={evt.get('user_id')}", f"kind={evt.get('kind')}"]
    parts.extend(f"{key}={evt[key]}" for key in LINE_KEYS if key in evt)
    return " ".join(parts)


def _emit(level: int, msg: str, *, is_json: bool) -> None:
    record = _logger.makeRecord(_logger.name, level, "", 0, msg, (), None)
    record.is_json = is_json  # type: ignore[attr-defined]
    _logger.handle(record)


def log_event(kind: str, user_id: str | None, *, level: int = logging.INFO, **fields: Any) -> None:
    _ensure_handlers()
    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": str(uuid.uuid4()),
        "kind": kind,
        "user_id": user_id,
        **fields,
    }
    _emit(level, _format_human(payload), is_json=False)
    if ENABLE_FILE_LOGS:
        _emit(level, json.dumps(payload, ensure_ascii=False, default=str), is_json=True)


__all__ = ["log_event"]
