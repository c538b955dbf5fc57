"""Reusable health-check router.

Provides ``/health`` (status report with uptime and memory), ``/health/live``
(liveness) and ``/health/ready`` (readiness). The readiness probe accepts
optional async callables that must all succeed, and reports unavailable while
the application is draining.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, Literal

import psutil
from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

HealthCheck = Callable[[], Awaitable[bool]]

# Health routes answer HEAD as well as GET
_READ_METHODS = ["GET", "HEAD"]

# Taken at import time, which for a service process is its startup.
_PROCESS_STARTED = time.monotonic()


class ProcessClock:
    """Monotonic uptime plus a wall-clock ``now`` for report timestamps."""

    def __init__(
        self,
        started: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._monotonic = monotonic
        self._started = _PROCESS_STARTED if started is None else started
        self._now = now or (lambda: datetime.now(timezone.utc))

    def uptime(self) -> float:
        return max(0.0, self._monotonic() - self._started)

    def now(self) -> datetime:
        return self._now()


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MemoryUsage(_CamelModel):
    used_bytes: int
    total_bytes: int
    rss_bytes: int
    vms_bytes: int
    percent: float


class HealthReport(_CamelModel):
    status: Literal["OK"] = "OK"
    uptime_seconds: float
    memory: MemoryUsage
    timestamp: str


class LivenessReport(BaseModel):
    status: Literal["alive"] = "alive"


class ReadinessReport(BaseModel):
    status: Literal["ready", "unavailable"]
    checks: dict[str, str]


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` designator."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def read_memory_usage(process: psutil.Process | None = None) -> MemoryUsage:
    proc = process or psutil.Process()
    info = proc.memory_info()
    # Both totals describe this process: resident pages out of its mapped size
    return MemoryUsage(
        used_bytes=info.rss,
        total_bytes=info.vms,
        rss_bytes=info.rss,
        vms_bytes=info.vms,
        percent=round(proc.memory_percent(), 3),
    )


def build_health_report(clock: ProcessClock) -> HealthReport:
    return HealthReport(
        uptime_seconds=clock.uptime(),
        memory=read_memory_usage(),
        timestamp=format_timestamp(clock.now()),
    )


def get_clock(request: Request) -> ProcessClock:
    return request.app.state.clock


def create_health_router(
    readiness_checks: list[HealthCheck] | None = None,
) -> APIRouter:
    """Build a health router with optional readiness probes.

    The application must expose a ``ProcessClock`` as ``app.state.clock``;
    ``app.state.draining`` set to True makes readiness fail.

    Args:
        readiness_checks: List of async callables returning True if healthy.

    Returns:
        A FastAPI ``APIRouter`` with ``/health``, ``/health/live`` and
        ``/health/ready``.
    """
    router = APIRouter(prefix="/health", tags=["health"])
    checks = readiness_checks or []

    @router.api_route(
        "", methods=_READ_METHODS, response_model=HealthReport, summary="Status report"
    )
    async def health(clock: ProcessClock = Depends(get_clock)) -> HealthReport:
        return build_health_report(clock)

    @router.api_route(
        "/live", methods=_READ_METHODS, response_model=LivenessReport, summary="Liveness probe"
    )
    async def liveness() -> LivenessReport:
        return LivenessReport()

    @router.api_route(
        "/ready", methods=_READ_METHODS, response_model=ReadinessReport, summary="Readiness probe"
    )
    async def readiness(request: Request, response: Response) -> dict[str, Any]:
        results: dict[str, str] = {}
        all_ok = not getattr(request.app.state, "draining", False)
        if not all_ok:
            results["draining"] = "failing"

        for check in checks:
            name = getattr(check, "__name__", str(check))
            try:
                ok = await check()
                results[name] = "ok" if ok else "failing"
                if not ok:
                    all_ok = False
            except Exception as exc:
                results[name] = f"error: {exc}"
                all_ok = False

        if not all_ok:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return {"status": "ready" if all_ok else "unavailable", "checks": results}

    return router
