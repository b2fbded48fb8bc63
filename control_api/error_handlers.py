"""Exception handlers mapping engine errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from shared.exceptions import (
    ConfigurationError,
    FetchError,
    LaunchError,
    ManifestWriteError,
    RadioEngineError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_status(exc: RadioEngineError) -> int:
    """HTTP status code for an engine error."""
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, FetchError):
        return status.HTTP_502_BAD_GATEWAY
    if isinstance(exc, (ConfigurationError, LaunchError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the engine exception handlers on the app.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(RadioEngineError)
    async def engine_exception_handler(request: Request, exc: RadioEngineError):
        """Handle engine errors raised by control operations."""
        status_code = error_status(exc)
        logger.error(f"{request.method} {request.url.path} failed: {exc}")

        content = {"detail": str(exc), "error": type(exc).__name__}
        if isinstance(exc, FetchError):
            content["url"] = exc.url
            if exc.status_code is not None:
                content["upstream_status"] = exc.status_code
        elif isinstance(exc, ManifestWriteError):
            content["path"] = exc.path

        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle invalid arguments rejected by the store."""
        logger.warning(f"Rejected request to {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "error": "ValueError"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
        """Handle database errors."""
        logger.error(f"Database error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Database error occurred"},
        )
