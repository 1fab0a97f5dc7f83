"""Error Handlers — map every failure to the CraftSyncError JSON envelope.

Invariants:
    - Domain errors render exc.to_response() with exc.http_status
    - Request validation failures render as 400 VALIDATION_ERROR with per-field details
    - Anything else is a 500 INTERNAL_ERROR; the exception text never reaches the client
    - Log level follows error severity; combination_key / session_id ride along as extras

Design Decisions:
    - Every envelope is produced by a CraftSyncError instance, so REST clients
      see one shape regardless of which layer failed
    - Field paths drop the body/query/path location prefix: clients name fields,
      not ASGI locations
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from craftsync.core.errors import (
    CombinationValidationError,
    CraftSyncError,
    ErrorCategory,
    ErrorSeverity,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.WARNING,
    ErrorSeverity.CRITICAL: logging.ERROR,
}

_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def register_error_handlers(app: FastAPI) -> None:
    """Install domain, validation, and catch-all handlers on the app."""
    app.add_exception_handler(CraftSyncError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected_error)


def _render(exc: CraftSyncError, **extra_error_fields) -> JSONResponse:
    body = exc.to_response()
    body["error"].update(extra_error_fields)
    return JSONResponse(status_code=exc.http_status, content=body)


def _field_path(loc: tuple) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)


async def handle_domain_error(request: Request, exc: CraftSyncError) -> JSONResponse:
    logger.log(
        _LOG_LEVELS.get(exc.severity, logging.ERROR),
        "%s on %s: %s", exc.code, request.url.path, exc.message,
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "combination_key": exc.context.combination_key,
            "session_id": exc.context.session_id,
        },
    )
    return _render(exc)


async def handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": _field_path(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    first_field = details[0]["field"] if details else ""
    logger.warning(
        "Rejected request on %s: %s", request.url.path,
        ", ".join(d["field"] for d in details),
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    error = CombinationValidationError("Invalid request data", first_field)
    return _render(error, details=details)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled %s on %s", type(exc).__name__, request.url.path,
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return _render(CraftSyncError(
        "An unexpected error occurred", "INTERNAL_ERROR",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    ))
