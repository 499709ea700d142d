"""
Structured Logging Middleware

One access record per request, tagged with a request id and, once the
session has been validated, the acting principal and its tenant. The id is
taken from X-Request-ID when the client sends one, kept in a ContextVar for
the lifetime of the request, echoed on the response and stamped onto every
log record by RequestIdFilter.
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import datetime, timezone

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Probed by load balancers every few seconds
QUIET_PATHS = frozenset({"/api/health"})


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("")
        return True


class StructuredFormatter(logging.Formatter):
    """Render each record as a single JSON line."""

    EXTRA_FIELDS = (
        "user_id",
        "tenant_id",
        "tenant_handle",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "client_ip",
        "error_code",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", ""),
            "message": record.getMessage(),
        }
        entry.update({key: getattr(record, key) for key in self.EXTRA_FIELDS if hasattr(record, key)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def get_client_ip(request: Request) -> str | None:
    """Client address, honouring X-Forwarded-For / X-Real-IP from a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, logger_name: str = "taskboard.access"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception as e:
                self._access_log(request, 500, started, error=str(e))
                raise
            response.headers[REQUEST_ID_HEADER] = request_id
            self._access_log(request, response.status_code, started)
            return response
        finally:
            request_id_var.reset(token)

    def _access_log(self, request: Request, status_code: int, started: float, error: str | None = None) -> None:
        if request.url.path in QUIET_PATHS:
            return

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        fields = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_ip": get_client_ip(request),
        }
        # Populated by TenantHandleMiddleware and get_current_principal respectively
        handle = getattr(request.state, "tenant_handle", None)
        if handle:
            fields["tenant_handle"] = handle
        principal = getattr(request.state, "principal", None)
        if principal is not None:
            fields["user_id"] = principal.user_id
            fields["tenant_id"] = principal.tenant_id

        message = f"{request.method} {request.url.path} -> {status_code} in {duration_ms}ms"
        if error:
            message = f"{message} ({error})"
        self.logger.log(_level_for(status_code), message, extra=fields)


def setup_structured_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stderr handler on the root logger."""
    level = logging.getLevelName(log_level.upper())

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s [%(request_id)s] %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("taskboard").setLevel(level)
    # Driver and server chatter stays out of the application log
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_request_id() -> str:
    return request_id_var.get("")
