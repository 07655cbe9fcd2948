"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from okr_coach.core.exceptions import (
    ConfigurationError,
    InvalidTransitionError,
    OKRCoachError,
    RollbackError,
    SessionCompletedError,
    SessionNotFoundError,
    SnapshotNotFoundError,
    ValidationError,
)

log = structlog.get_logger(__name__)


def _error_body(error_type: str, message: str) -> dict:
    return {"error": {"type": error_type, "message": message}}


def setup_exception_handlers(app: FastAPI):
    """Register handlers mapping OKRCoachError subclasses to HTTP responses."""

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("ConfigurationError", "Server configuration error"),
        )

    @app.exception_handler(OKRCoachError)
    async def okr_coach_error_handler(
        request: Request,
        exc: OKRCoachError,
    ) -> JSONResponse:
        """Map domain errors to status codes with a consistent error body.

        404 for unknown sessions or snapshots, 409 for conflicts with the
        session's state, 422 for invalid input, 500 otherwise.
        """
        log_ctx = log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if isinstance(exc, (SessionNotFoundError, SnapshotNotFoundError)):
            status_code = status.HTTP_404_NOT_FOUND
        elif isinstance(exc, (SessionCompletedError, InvalidTransitionError, RollbackError)):
            status_code = status.HTTP_409_CONFLICT
        elif isinstance(exc, ValidationError):
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

        log_ctx.warning(
            "request_error",
            message=exc.message,
            status_code=status_code,
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(type(exc).__name__, exc.message),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("InternalServerError", "An unexpected error occurred"),
        )
