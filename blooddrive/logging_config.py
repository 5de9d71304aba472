"""
BloodDrive - Logging
====================
Structured logging for the API and the participation workflows.

Every record is an event name (``registration_created``,
``backend_query_failed``) plus fields passed through ``extra=``. Records
are written as one JSON object per line, or as a coloured single line when
``LOG_FORMAT=console`` (the default under ``DEBUG``).

Request context (request id, signed-in user, path) is attached to every
record emitted while a request is being served.

Usage:
    from blooddrive.logging_config import get_logger, log_event

    logger = get_logger(__name__)
    logger.info("campaign_created", extra={"campaign_id": "42"})

    log_event("participation_validated", registration_id="7", points_awarded=True)
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from blooddrive.config import settings


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Never written out, whatever the caller passes in ``extra``.
REDACTED_FIELDS = frozenset({"password", "access_token", "refresh_token", "validation_code", "code"})


# =============================================================================
# Request Context
# =============================================================================

_request_id: ContextVar[str | None] = ContextVar("log_request_id", default=None)
_user_id: ContextVar[str | None] = ContextVar("log_user_id", default=None)
_path: ContextVar[str | None] = ContextVar("log_path", default=None)


class LogContext:
    """
    Request-scoped fields added to every record.

    Backed by context variables, so values set by the middleware are seen
    by sync route handlers running in the threadpool.
    """

    @staticmethod
    def set_request_id(request_id: str | None) -> None:
        _request_id.set(request_id)

    @staticmethod
    def get_request_id() -> str | None:
        return _request_id.get()

    @staticmethod
    def set_user_id(user_id: str | None) -> None:
        _user_id.set(user_id)

    @staticmethod
    def set_endpoint(path: str | None) -> None:
        _path.set(path)

    @staticmethod
    def fields() -> dict[str, str]:
        values = {"request_id": _request_id.get(), "user_id": _user_id.get(), "path": _path.get()}
        return {key: value for key, value in values.items() if value is not None}


# =============================================================================
# Formatters
# =============================================================================

_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    extra = {}
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        extra[key] = "[redacted]" if key in REDACTED_FIELDS else value
    return extra


def _default(obj: Any) -> str:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: event, level, context, then extra fields."""

    def __init__(self, *, service_name: str = "blooddrive", environment: str = "production") -> None:
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "event": record.getMessage(),
            "logger": record.name,
            "service": self.service_name,
            "environment": self.environment,
        }
        entry.update(LogContext.fields())
        entry.update(_extra_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=_default, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """``LEVEL HH:MM:SS [request] logger: event key=value ...`` for local runs."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S")
        request_id = LogContext.get_request_id() or "-"
        pairs = " ".join(f"{key}={value}" for key, value in _extra_fields(record).items())

        line = f"{color}{record.levelname:<8}{self.RESET} {clock} [{request_id}] {record.name}: {record.getMessage()}"
        if pairs:
            line = f"{line} {pairs}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return line


# =============================================================================
# Setup
# =============================================================================


def _level_from(value: str | int | None) -> int:
    if isinstance(value, int):
        return value
    name = (value or os.environ.get("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def _use_json(log_format: str | None) -> bool:
    choice = (log_format or os.environ.get("LOG_FORMAT") or "").lower()
    if choice in ("json", "console"):
        return choice == "json"
    return not settings.debug_mode


_configured = False


def configure_logging(
    *,
    level: str | int | None = None,
    service_name: str = "blooddrive",
    environment: str | None = None,
    log_format: str | None = None,
) -> None:
    """Install a single stdout handler on the root logger."""
    global _configured

    resolved = _level_from(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    if _use_json(log_format):
        env = environment or ("development" if settings.debug_mode else "production")
        handler.setFormatter(StructuredFormatter(service_name=service_name, environment=env))
    else:
        handler.setFormatter(ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(resolved)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name)


def log_event(event_name: str, level: str | LogLevel = LogLevel.INFO, **fields: Any) -> None:
    """
    Log a domain event on the ``blooddrive.events`` logger.

    Example:
        log_event("registration_created", campaign_id="12", user_id="u-1")
    """
    name = level.value if isinstance(level, LogLevel) else str(level).upper()
    get_logger("blooddrive.events").log(getattr(logging, name, logging.INFO), event_name, extra=fields)
