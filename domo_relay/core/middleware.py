"""HTTP middleware: request correlation IDs and inbound body-size limits."""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from domo_relay.core.utils.logging_config import get_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with a correlation ID.

    Reuses the caller's ``X-Correlation-ID`` header when present, otherwise
    generates one. The ID is placed in the logging context for the duration of
    the request and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next):
        set_correlation_id(request.headers.get(CORRELATION_HEADER))
        correlation_id = get_correlation_id()
        try:
            response = await call_next(request)
        finally:
            set_correlation_id(None)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_bytes`` with 413.

    A declared Content-Length is checked before the app runs. Bodies sent
    without one (chunked uploads) are counted as they are received, and the
    read fails as soon as the running total passes the limit.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    content={"error": "Invalid Content-Length header"},
                )
                await response(scope, receive, send)
                return
            if declared > self.max_bytes:
                logger.warning(
                    f"Rejected {request.method} {request.url.path}: body of {declared} bytes"
                )
                response = JSONResponse(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    content={
                        "error": "Request body too large",
                        "details": {"max_bytes": self.max_bytes},
                    },
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(
                        f"Rejected {request.method} {request.url.path}: "
                        f"streamed body passed {self.max_bytes} bytes"
                    )
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail="Request body too large",
                    )
            return message

        await self.app(scope, limited_receive, send)
