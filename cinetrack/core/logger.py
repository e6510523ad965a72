# cinetrack/core/logger.py
from __future__ import annotations

"""
CineTrack — Logging (Loguru)
----------------------------
`configure_logging(settings)` installs the process-wide sinks:

- console: colorized single line, or one JSON object per line (`LOG_JSON`)
- file (`LOG_TO_FILE`): `LOG_DIR/LOG_FILE`, rotated at `LOG_ROTATION`
- stdlib `logging` (uvicorn, starlette, our own modules) is routed into Loguru,
  so `extra={...}` on a stdlib call shows up in the record's `extra`

Every line carries the `request_id` bound by `RequestIDMiddleware`.
Calling it again replaces only the sinks it added earlier.
"""

import json
import logging
import sys
from typing import Any, Dict, List

from loguru import logger

from cinetrack.core.config import Settings

_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "starlette")
_installed_sinks: List[int] = []


def _escape_markup(value: str) -> str:
    return value.replace("<", "[").replace(">", "]")


def _pretty(record) -> str:
    record["extra"].setdefault("request_id", "-")
    where = f"{_escape_markup(record['name'] or '')}:{_escape_markup(record['function'])}"
    return (
        "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
        f"<cyan>{where}</cyan>:{{line}} [{{extra[request_id]}}] "
        "<level>{message}</level>\n{exception}"
    )


def _as_json(record) -> str:
    extra = dict(record["extra"])
    extra.pop("_json", None)
    doc: Dict[str, Any] = {
        "time": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "message": record["message"],
        "request_id": extra.pop("request_id", None),
    }
    if extra:
        doc["extra"] = extra
    if record["exception"] is not None:
        doc["exception"] = repr(record["exception"].value)
    record["extra"]["_json"] = json.dumps(doc, ensure_ascii=False, default=str)
    return "{extra[_json]}\n"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to Loguru, carrying non-standard attributes as `extra`."""

    _RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        extra = {k: v for k, v in vars(record).items() if k not in self._RESERVED}
        # Walk out of the logging module so Loguru reports the real caller.
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame, depth = frame.f_back, depth + 1
        logger.bind(**extra).opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(settings: Settings) -> None:
    fmt = _as_json if settings.LOG_JSON else _pretty
    debug = settings.is_development and settings.LOG_LEVEL == "DEBUG"

    while _installed_sinks:
        try:
            logger.remove(_installed_sinks.pop())
        except ValueError:
            pass
    # Loguru's default stderr handler has id 0.
    try:
        logger.remove(0)
    except ValueError:
        pass

    _installed_sinks.append(
        logger.add(sys.stdout, level=settings.LOG_LEVEL, format=fmt, backtrace=debug, diagnose=debug)
    )
    if settings.LOG_TO_FILE:
        log_dir = settings.LOG_DIR
        log_dir.mkdir(parents=True, exist_ok=True)
        _installed_sinks.append(
            logger.add(
                str(log_dir / settings.LOG_FILE),
                level=settings.LOG_LEVEL,
                format=fmt,
                rotation=settings.LOG_ROTATION,
                enqueue=True,
            )
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _FRAMEWORK_LOGGERS:
        std = logging.getLogger(name)
        std.handlers = [InterceptHandler()]
        std.propagate = False


__all__ = ["InterceptHandler", "configure_logging"]
