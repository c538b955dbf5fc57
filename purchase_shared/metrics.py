"""Prometheus metrics registry owned by one service instance.

Each ``MetricsRegistry`` wraps its own ``CollectorRegistry`` so two
applications in one process (tests, sidecars) never collide on metric names.
"""

from __future__ import annotations

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_client.metrics_core import Metric
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

UNMATCHED_ROUTE = "<unmatched>"


class MetricsRegistry:
    """Request counters plus the default process/platform/GC collectors."""

    def __init__(
        self,
        *,
        namespace: str = "",
        default_metrics: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)

        if default_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests handled.",
            ["method", "route", "status"],
            namespace=namespace,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds.",
            ["method", "route"],
            namespace=namespace,
            registry=self.registry,
        )

    def observe_request(
        self, method: str, route: str, status: int, duration: float
    ) -> None:
        self.requests_total.labels(method=method, route=route, status=str(status)).inc()
        self.request_duration.labels(method=method, route=route).observe(duration)

    def collect(self) -> list[Metric]:
        """Return the current metric families.

        prometheus_client gathers values at call time, so there is no
        background collection loop to drive.
        """
        return list(self.registry.collect())

    def snapshot(self) -> tuple[bytes, str]:
        """Render the registry in the text exposition format."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


def route_template(request: Request) -> str:
    """Return the path template of the route that served ``request``.

    The router records the matched route in the scope, so this is only
    meaningful once the downstream app has run.
    """
    route = request.scope.get("route")
    return getattr(route, "path_format", None) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts every request and observes its latency in ``metrics``."""

    def __init__(self, app, metrics: MetricsRegistry) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self.metrics.observe_request(
                request.method,
                route_template(request),
                status_code,
                time.perf_counter() - started,
            )
