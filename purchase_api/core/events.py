"""Purchase service: application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log startup and mark the app as draining on shutdown."""
    log = app.state.logger
    settings = app.state.settings
    app.state.draining = False
    log.info(
        f"{settings.service_name} starting up",
        environment=settings.environment,
        port=settings.service_port,
    )

    yield

    # Readiness reports unavailable while in-flight requests finish
    app.state.draining = True
    log.info(f"{settings.service_name} shutting down")
