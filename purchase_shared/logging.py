"""structlog setup for the status services.

One stdout handler on the root logger renders both structlog events and
stdlib records (uvicorn, gunicorn, third-party libraries) the same way: JSON
in production, coloured console output elsewhere.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from purchase_shared.config import BaseServiceSettings

# Server loggers that install their own handlers; their records are sent to
# the root handler instead.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "gunicorn.error")
# Replaced by AccessLogMiddleware.
_ACCESS_LOGGERS = ("uvicorn.access", "gunicorn.access")


def setup_logging(settings: BaseServiceSettings) -> None:
    """Configure structlog and stdlib logging from ``settings``.

    Uses ``settings.log_level``, ``settings.json_logs`` and tags every line
    with ``settings.service_name``.
    """
    pre_chain = _pre_chain(settings.service_name, settings.json_logs)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor
    if settings.json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level.upper())

    _route_server_loggers()


def _pre_chain(service_name: str, json_logs: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        _add_service_name(service_name),
    ]
    if json_logs:
        # The console renderer prints tracebacks itself
        processors.append(structlog.processors.format_exc_info)
    return processors


def _route_server_loggers() -> None:
    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
    for name in _ACCESS_LOGGERS:
        access_logger = logging.getLogger(name)
        access_logger.handlers.clear()
        access_logger.propagate = False


def _add_service_name(service_name: str) -> structlog.types.Processor:
    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["service"] = service_name
        return event_dict

    return processor


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog bound logger."""
    return structlog.get_logger(name)
