"""
Relay error taxonomy and FastAPI exception handlers.

Every error raised by the services derives from ``RelayError`` and carries the
HTTP status it maps to, a short message and an optional details payload
(usually the upstream error body). Handlers registered in ``register_exception_handlers``
turn them into ``{"error": ..., "details": ...}`` JSON responses.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors surfaced to relay callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        details: Any = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(RelayError):
    """A required field is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(RelayError):
    """The requested in-memory record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class UpstreamError(RelayError):
    """Non-2xx response (or transport failure) from the Domo platform."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(
        self,
        message: str,
        details: Any = None,
        status_code: Optional[int] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, details=details, status_code=status_code)
        # None when the request never produced a response
        self.upstream_status = upstream_status


class UpstreamAuthError(UpstreamError):
    """Domo rejected the bearer token with 401."""

    status_code = status.HTTP_401_UNAUTHORIZED


class TokenAcquisitionError(RelayError):
    """The client-credentials exchange failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}",
            extra={"status_code": exc.status_code, "upstream_details": exc.details},
        )
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/path validation failures map to 400, like ValidationError."""
    logger.warning(f"Request validation failed: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": jsonable_errors(exc)},
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object, which is not JSON serializable
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
