"""Purchase service: standalone server entry point.

Runs the FastAPI app under uvicorn, logs the bound port once the listener is
up and lets uvicorn drain in-flight requests on SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
from typing import Any

import uvicorn
from fastapi import FastAPI

from purchase_api.core.config import PurchaseSettings
from purchase_api.main import create_app
from purchase_shared.logging import get_logger, setup_logging

_STARTUP_POLL_SECONDS = 0.05


def build_server(app: FastAPI, settings: PurchaseSettings) -> uvicorn.Server:
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.service_port,
        # setup_logging routes uvicorn's loggers to the structlog handler
        log_config=None,
        log_level=settings.log_level.lower(),
        access_log=False,
        timeout_graceful_shutdown=settings.graceful_shutdown_seconds,
    )
    return uvicorn.Server(config)


def bound_port(server: uvicorn.Server) -> int:
    """Return the port the server actually listens on."""
    for listener in getattr(server, "servers", []):
        for sock in listener.sockets:
            return sock.getsockname()[1]
    return server.config.port


async def serve(server: uvicorn.Server, logger: Any) -> None:
    """Run ``server`` until it exits, logging once it accepts connections."""
    task = asyncio.create_task(server.serve())

    while not server.started and not task.done():
        await asyncio.sleep(_STARTUP_POLL_SECONDS)

    if server.started:
        port = bound_port(server)
        logger.info(f"Server is running on port {port}", port=port)

    await task
    logger.info("Server stopped")


def run(settings: PurchaseSettings | None = None) -> None:
    """Configure logging, build the app and serve it until shutdown."""
    settings = settings or PurchaseSettings()
    setup_logging(settings)
    logger = get_logger(settings.service_name)
    app = create_app(settings, logger=logger)
    asyncio.run(serve(build_server(app, settings), logger))
