"""Request body and cookie parsing middleware.

Parsed values land on ``request.state`` so handlers and later middleware can
read them without touching the raw stream again:

* ``request.state.body``: decoded JSON value or form dict, else ``None``.
* ``request.state.cookies``: plain ``dict`` of request cookies.
"""

from __future__ import annotations

import json

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette import status
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from purchase_shared.errors import error_response

_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
_FORM_TYPE = "application/x-www-form-urlencoded"


def _media_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == "application/json" or media_type.endswith("+json")


class BodyParserMiddleware(BaseHTTPMiddleware):
    """Parses JSON and URL-encoded bodies; rejects malformed or oversized ones."""

    def __init__(self, app: ASGIApp, max_body_bytes: int = 1_048_576) -> None:
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.body = None
        media_type = _media_type(request)

        if request.method not in _BODY_METHODS or not (
            _is_json(media_type) or media_type == _FORM_TYPE
        ):
            return await call_next(request)

        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            return self._too_large()

        raw = await request.body()
        if len(raw) > self.max_body_bytes:
            return self._too_large()

        if _is_json(media_type):
            if raw.strip():
                try:
                    request.state.body = json.loads(raw)
                except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                    return error_response(
                        status.HTTP_400_BAD_REQUEST,
                        "malformed_body",
                        "Request body is not valid JSON",
                        details={"position": getattr(exc, "pos", None)},
                    )
            else:
                request.state.body = {}
        else:
            form = await request.form()
            request.state.body = {key: value for key, value in form.items()}

        return await call_next(request)

    def _too_large(self) -> Response:
        return error_response(
            status.HTTP_413_CONTENT_TOO_LARGE,
            "payload_too_large",
            f"Request body exceeds {self.max_body_bytes} bytes",
        )


class CookieParserMiddleware(BaseHTTPMiddleware):
    """Exposes the request cookies as ``request.state.cookies``."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.cookies = dict(request.cookies)
        return await call_next(request)
