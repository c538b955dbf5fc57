"""Unified JSON error bodies and the exception handlers that produce them.

Every error response the service writes itself has the shape
``{"error": {"code": ..., "message": ..., "details": ...}}``.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

_STATUS_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_413_CONTENT_TOO_LARGE: "payload_too_large",
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: "unsupported_media_type",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
    status.HTTP_504_GATEWAY_TIMEOUT: "request_timeout",
}


def error_payload(
    code: str, message: str, details: Any | None = None
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_payload(code, message, details)),
        headers=headers,
    )


def code_for_status(status_code: int) -> str:
    return _STATUS_CODES.get(status_code, "http_error")


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    sanitized: list[dict[str, Any]] = []
    for err in errors:
        entry = dict(err)
        ctx = entry.get("ctx")
        if isinstance(ctx, dict):
            safe_ctx: dict[str, Any] = {}
            for key, value in ctx.items():
                try:
                    json.dumps(value)
                    safe_ctx[key] = value
                except TypeError:
                    safe_ctx[key] = repr(value)
            entry["ctx"] = safe_ctx
        sanitized.append(entry)
    return sanitized


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # A known path with the wrong method is reported like an unknown path
    unrouted = exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED or (
        exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found"
    )
    if unrouted:
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "not_found",
            f"Route {request.method} {request.url.path} not found",
        )
    return error_response(
        exc.status_code,
        code_for_status(exc.status_code),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        "validation_error",
        "Request validation failed.",
        details={"errors": _sanitize_validation_errors(list(exc.errors()))},
    )


def log_unhandled(logger: Any, request: Request, exc: Exception) -> None:
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )


def internal_error_response() -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "Internal server error.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for exceptions raised by the middleware chain itself.

    Handler exceptions are converted earlier by ``UnhandledErrorMiddleware``.
    """
    log_unhandled(request.app.state.logger, request, exc)
    return internal_error_response()


def register_exception_handlers(app: FastAPI) -> None:
    """Install the unified error handlers on ``app``."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
