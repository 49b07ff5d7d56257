"""Exception handlers that turn failures into the API's error envelope.

Every error leaves the API as
``{"error": {"message": ..., "status_code": ..., "details": ...}}``.
Client errors are logged as warnings. Server-side failures are logged in
full, while the client only ever sees a fixed message: database errors,
unexpected exceptions and the generation service's own error bodies are
never echoed back.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import AppException, UpstreamError
from core.logger import get_logger

logger = get_logger("core.error_handlers")


def create_error_response(message: str, status_code: int = 500, details: dict = None) -> JSONResponse:
    """Build the JSON error envelope; `details` is omitted when empty."""
    error_body = {"message": message, "status_code": status_code}
    if details:
        error_body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error_body})


def _where(request: Request) -> str:
    return f"{request.method} {request.url.path}"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an `AppException` with its own status code and details."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, "Application error (%s): %s [%s]", exc.status_code, exc.message, _where(request))
    return create_error_response(exc.message, exc.status_code, exc.details)


async def upstream_exception_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Generation service failures: 502 with the fixed message only.

    The upstream status stays in the log; clients get no upstream details.
    """
    logger.error(
        "Generation service failure (upstream status %s) [%s]",
        exc.details.get("upstream_status", "n/a"),
        _where(request),
    )
    return create_error_response(exc.message, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors on bodies, paths and query strings.

    Returns:
        JSONResponse (422) listing each offending field as ``body.field``.
    """
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation error [%s]: %s", _where(request), errors)
    return create_error_response("Validation error", 422, {"validation_errors": errors})


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle database errors without exposing them."""
    logger.error("Database error [%s]: %s", _where(request), exc, exc_info=exc)
    return create_error_response(
        "A database error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"type": "database_error"},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception [%s]: %s", _where(request), exc, exc_info=exc)
    return create_error_response(
        "An internal server error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"type": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    The more specific `UpstreamError` handler is matched before the
    `AppException` one because Starlette resolves handlers along the MRO.
    """
    app.add_exception_handler(UpstreamError, upstream_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    logger.info("Exception handlers registered")
