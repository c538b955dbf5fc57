"""Gunicorn settings for running the purchase service under UvicornWorker.

Usage:
    gunicorn purchase_api.asgi:app -c gunicorn_conf.py

Listener, log level and drain time come from the same environment variables
the service reads. Anything not set here keeps gunicorn's default.
"""

import multiprocessing
import os

from purchase_api.core.config import PurchaseSettings

_settings = PurchaseSettings()

bind = f"{_settings.host}:{_settings.service_port}"
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# Must exceed the per-request timeout so a slow request gets its 504 first
timeout = max(30, int(_settings.request_timeout_seconds * 2))
graceful_timeout = _settings.graceful_shutdown_seconds

loglevel = _settings.log_level.lower()
proc_name = _settings.service_name
