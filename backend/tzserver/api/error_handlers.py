"""Error Handlers — map every failure to the TzCacheError response shape.

Invariants:
    - TzCacheError → its own status and to_response() body
    - RequestValidationError → 400 with a per-parameter code
      (INVALID_CHANGEDSINCE, INVALID_NAME, INVALID_FORMAT, INVALID_TZID)
      and the field-level details
    - Exception (catch-all) → 500 INTERNAL_ERROR, never leaks internal details

Design Decisions:
    - Validation and catch-all responses are built from TzCacheError
      instances, so clients parse a single error shape
    - Extracted from main.py: main only wires routers and lifespan
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tzserver.core.errors import (
    ErrorCategory, ErrorSeverity, InvalidRequestError, TzCacheError,
)

logger = logging.getLogger(__name__)

REQUEST_PARAMETERS = ("changedsince", "name", "format", "tzid")


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(TzCacheError)
    async def cache_error_handler(request: Request, exc: TzCacheError):
        _log(request, exc)
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = invalid_request_from(exc)
        response = error.to_response()
        response["error"]["details"] = _details(exc)
        _log(request, error)
        return JSONResponse(status_code=error.http_status, content=response)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        error = TzCacheError(
            "An unexpected error occurred", "INTERNAL_ERROR",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        )
        return JSONResponse(status_code=error.http_status, content=error.to_response())


def invalid_request_from(exc: RequestValidationError) -> InvalidRequestError:
    """Typed error for the first offending request parameter."""
    for e in exc.errors():
        loc = e.get("loc", ())
        parameter = loc[-1] if loc else None
        if parameter in REQUEST_PARAMETERS:
            return InvalidRequestError(
                parameter, f"The '{parameter}' parameter is invalid: {e['msg']}",
            )
    return InvalidRequestError(
        "request", "Invalid request data", code="VALIDATION_ERROR",
    )


def _details(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]


def _log(request: Request, exc: TzCacheError) -> None:
    level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
    logger.log(
        level, f"{type(exc).__name__}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
