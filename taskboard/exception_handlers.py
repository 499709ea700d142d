"""
Global Exception Handlers for Taskboard

Every failure renders the same envelope:

{
    "error": {
        "status_code": 403,
        "error_code": "CROSS_TENANT_ACCESS",
        "message": "Resource belongs to another tenant",
        "type": "Forbidden",
        "details": {"reason": "CROSS_TENANT_ACCESS"},
        "path": "/api/tenants/..."
    }
}

Raw storage and driver errors are logged server-side and replaced by a
generic message; they are never forwarded to the caller.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.exceptions import AuthenticationError, ErrorCode, TrackerError

logger = logging.getLogger(__name__)

ERROR_TYPES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Validation Error",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

HTTP_ERROR_CODES = {
    400: ErrorCode.VALIDATION_FAILED,
    401: ErrorCode.AUTH_FAILED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.DUPLICATE_RESOURCE,
    422: ErrorCode.VALIDATION_FAILED,
    503: ErrorCode.INFRASTRUCTURE_FAILURE,
}

GENERIC_STORAGE_MESSAGE = "A storage error occurred, please retry"
GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred. Please try again later."


def get_error_type(status_code: int) -> str:
    return ERROR_TYPES.get(status_code, "Error")


def get_http_error_code(status_code: int) -> str:
    """Error code for a plain HTTPException (e.g. 404 for an unknown route)."""
    return HTTP_ERROR_CODES.get(status_code, ErrorCode.INTERNAL_ERROR).value


def create_error_response(
    request: Request,
    status_code: int,
    message: str,
    error_code: ErrorCode | str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope; empty details are omitted."""
    body: dict[str, Any] = {
        "status_code": status_code,
        "error_code": ErrorCode(error_code).value,
        "message": message,
        "type": get_error_type(status_code),
    }
    if details:
        body["details"] = details
    body["path"] = request.url.path
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def tracker_exception_handler(request: Request, exc: TrackerError) -> JSONResponse:
    """Render a TrackerError; 5xx are logged as errors, everything else as warnings."""
    # Authentication failures log the private reason, never the public message
    detail = exc.reason if isinstance(exc, AuthenticationError) else exc.message
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        f"{type(exc).__name__} on {request.method} {request.url.path}: {detail}",
        extra={"status_code": exc.status_code, "error_code": exc.error_code.value},
    )

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return create_error_response(request, exc.status_code, exc.message, exc.error_code, exc.details, headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
    return create_error_response(
        request, exc.status_code, str(exc.detail), get_http_error_code(exc.status_code), headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation; field paths use the wire (camelCase) names."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation failed on {request.url.path}: {[error['field'] for error in errors]}")
    return create_error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        ErrorCode.VALIDATION_FAILED,
        {"validation_errors": errors},
    )


async def storage_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Storage failures and timeouts are retryable; driver detail stays in the log."""
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc!r}", exc_info=True)
    return create_error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        GENERIC_STORAGE_MESSAGE,
        ErrorCode.INFRASTRUCTURE_FAILURE,
        {"retryable": True},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=True)
    return create_error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        GENERIC_INTERNAL_MESSAGE,
        ErrorCode.INTERNAL_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    handlers = [
        (TrackerError, tracker_exception_handler),
        (StarletteHTTPException, http_exception_handler),
        (RequestValidationError, validation_exception_handler),
        (SQLAlchemyError, storage_exception_handler),
        (TimeoutError, storage_exception_handler),
        (Exception, unhandled_exception_handler),
    ]
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, handler)
