"""
API middleware stack.

- Request ID (X-Request-ID) and structured access logging
- Global exception handler
- CORS for the browser presentation layer
"""
from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

_QUIET_PATHS = ("/health", "/metrics")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and logs method, path, status and latency."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        start = time.monotonic()

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        if request.url.path not in _QUIET_PATHS:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.monotonic() - start) * 1000, 2),
                request_id=request_id,
            )
        return response


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            request_id=request_id,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "internal_server_error", "request_id": request_id},
        )


def setup_middleware(app: FastAPI) -> None:
    """CORS outermost so preflight requests never reach the app."""
    settings = get_settings()
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    setup_exception_handlers(app)
