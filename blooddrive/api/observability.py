"""
Request tracking for the API.

Every request gets an id (taken from ``X-Request-ID`` when the client sends
one), is timed, and ends with one structured log line.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from blooddrive.exceptions import BloodDriveError
from blooddrive.logging_config import LogContext, get_logger

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

logger = get_logger(__name__)

_SENSITIVE_PARAMS = {"code", "token", "access_token", "password", "email"}


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


def bind_user(request: Request, user_id: str | None) -> None:
    """Attach the signed-in user to the request, for logs."""
    request.state.user_id = user_id
    LogContext.set_user_id(user_id)


def sanitize_query(query: str) -> str:
    """Redact codes, tokens and emails from a query string before logging it."""
    sanitized = []
    for part in query.split("&"):
        if "=" in part:
            key, _ = part.split("=", 1)
            if key.lower() in _SENSITIVE_PARAMS:
                sanitized.append(f"{key}=***REDACTED***")
                continue
        sanitized.append(part)
    return "&".join(sanitized)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Adds request ID tracking, timing and structured logging to all requests.

    Log format:
        {
            "timestamp": "2025-02-01T10:00:00Z",
            "level": "INFO",
            "request_id": "abc123",
            "message": "request_completed",
            "path": "/v1/campaigns",
            "status_code": 200,
            "duration_ms": 45
        }
    """

    def __init__(self, app: ASGIApp, *, slow_request_threshold_ms: float = 1000.0) -> None:
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or generate_request_id()
        _request_id_ctx.set(request_id)
        LogContext.set_request_id(request_id)
        LogContext.set_user_id(None)
        LogContext.set_endpoint(str(request.url.path))

        started = time.perf_counter()
        meta: dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
        }
        if request.url.query:
            meta["query_params"] = sanitize_query(str(request.url.query))

        try:
            response = await call_next(request)
        except Exception as exc:
            meta.update(
                {
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            )
            if isinstance(exc, BloodDriveError):
                exc.request_id = request_id
                meta["error_code"] = exc.error_code
            logger.error("request_failed", extra=meta, exc_info=True)
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        meta.update({"status_code": response.status_code, "duration_ms": round(duration_ms, 2)})
        if hasattr(request.state, "result_count"):
            meta["result_count"] = request.state.result_count
        if getattr(request.state, "user_id", None):
            meta["user_id"] = request.state.user_id

        if duration_ms >= self.slow_request_threshold_ms:
            meta["slow_request"] = True
            logger.warning("request_completed_slow", extra=meta)
        else:
            logger.info("request_completed", extra=meta)
        return response
