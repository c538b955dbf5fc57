"""Purchase service: FastAPI application factory.

Serves a greeting, health/readiness reports, the API status message and a
Prometheus metrics snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware import Middleware

from purchase_api.core.config import PurchaseSettings, settings as default_settings
from purchase_api.core.events import lifespan
from purchase_api.providers import RouteProvider, mount_route_providers
from purchase_api.routers import api, health, home
from purchase_api.routers import metrics as metrics_routes
from purchase_shared.errors import register_exception_handlers
from purchase_shared.health import ProcessClock
from purchase_shared.logging import get_logger, setup_logging
from purchase_shared.metrics import MetricsMiddleware, MetricsRegistry
from purchase_shared.middleware import (
    AccessLogMiddleware,
    RequestContextMiddleware,
    RequestTimeoutMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from purchase_shared.parsers import BodyParserMiddleware, CookieParserMiddleware


def build_middleware(
    settings: PurchaseSettings,
    logger: Any,
    metrics: MetricsRegistry | None,
) -> list[Middleware]:
    """Return the request interceptors in order, outermost first."""
    stack = [
        Middleware(RequestContextMiddleware),
        Middleware(AccessLogMiddleware, logger=logger),
    ]
    if metrics is not None:
        stack.append(Middleware(MetricsMiddleware, metrics=metrics))
    if settings.security_headers_enabled:
        stack.append(Middleware(SecurityHeadersMiddleware))
    stack += [
        Middleware(BodyParserMiddleware, max_body_bytes=settings.max_body_bytes),
        Middleware(CookieParserMiddleware),
        Middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(
            RequestTimeoutMiddleware,
            timeout=settings.request_timeout_seconds,
            logger=logger,
        ),
        Middleware(UnhandledErrorMiddleware, logger=logger),
    ]
    return stack


def create_app(
    settings: PurchaseSettings | None = None,
    *,
    logger: Any = None,
    metrics: MetricsRegistry | None = None,
    clock: ProcessClock | None = None,
    route_providers: Iterable[RouteProvider] = (),
) -> FastAPI:
    """Construct and return the FastAPI application.

    Without an explicit ``logger`` the process-wide structlog configuration is
    (re)applied and a service logger is bound.
    """
    settings = settings or default_settings

    if logger is None:
        setup_logging(settings)
        logger = get_logger(settings.service_name)

    if metrics is None and settings.metrics_enabled:
        metrics = MetricsRegistry(namespace=settings.metrics_namespace)

    application = FastAPI(
        title="Purchase Status Service",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        middleware=build_middleware(settings, logger, metrics),
    )

    application.state.settings = settings
    application.state.logger = logger
    application.state.metrics = metrics
    application.state.clock = clock or ProcessClock()
    application.state.draining = False

    register_exception_handlers(application)

    # Routers
    application.include_router(home.router)
    application.include_router(health.router)
    application.include_router(api.router)
    if metrics is not None:
        application.include_router(metrics_routes.router)
    mount_route_providers(application, route_providers)

    return application

