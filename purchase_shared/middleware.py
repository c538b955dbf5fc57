"""ASGI middleware shared by the status services.

Request/correlation-ID propagation, access logging, default security headers,
a per-request timeout and the boundary that turns handler exceptions into 500s.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any

import structlog
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from purchase_shared.errors import error_response, internal_error_response, log_unhandled

_CORRELATION_HEADER = "X-Correlation-ID"
_REQUEST_HEADER = "X-Request-ID"

DEFAULT_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Origin-Agent-Cluster": "?1",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Injects request/correlation IDs into each request and structlog context."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(_REQUEST_HEADER, str(uuid.uuid4()))
        correlation_id = request.headers.get(_CORRELATION_HEADER, request_id)

        # Bind to structlog context vars so every log line includes these IDs
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            correlation_id=correlation_id,
        )
        request.state.request_id = request_id

        response: Response = await call_next(request)

        response.headers[_REQUEST_HEADER] = request_id
        response.headers[_CORRELATION_HEADER] = correlation_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Writes one structured line per request once the final status is known."""

    def __init__(self, app: ASGIApp, logger: Any) -> None:
        super().__init__(app)
        self.logger = logger

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        self.logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=_elapsed_ms(started),
            client=request.client.host if request.client else None,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds default security headers without overriding ones a handler set."""

    def __init__(self, app: ASGIApp, headers: dict[str, str] | None = None) -> None:
        super().__init__(app)
        self.headers = headers or DEFAULT_SECURITY_HEADERS

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for key, value in self.headers.items():
            response.headers.setdefault(key, value)
        return response


class RequestTimeoutMiddleware:
    """Answers 504 when the downstream app does not respond within ``timeout``.

    Once the response has started the request is still cancelled on timeout,
    but nothing more can be written to the client.
    """

    def __init__(self, app: ASGIApp, timeout: float, logger: Any = None) -> None:
        self.app = app
        self.timeout = timeout
        self.logger = logger or structlog.get_logger(__name__)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http" or self.timeout <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                "request_timed_out",
                path=scope.get("path"),
                timeout_seconds=self.timeout,
            )
            if response_started:
                return
            response = error_response(
                status.HTTP_504_GATEWAY_TIMEOUT,
                "request_timeout",
                f"Request did not complete within {self.timeout:g} seconds",
            )
            await response(scope, receive, send)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Logs an exception escaping a handler and answers the generic 500.

    Installed innermost so the outer stages still add request ids, security
    and CORS headers to the error response.
    """

    def __init__(self, app: ASGIApp, logger: Any) -> None:
        super().__init__(app)
        self.logger = logger

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_unhandled(self.logger, request, exc)
            return internal_error_response()
