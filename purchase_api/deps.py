"""FastAPI dependencies resolving the per-application collaborators."""

from __future__ import annotations

from typing import Any

from fastapi import Request

from purchase_api.core.config import PurchaseSettings
from purchase_shared.metrics import MetricsRegistry


def get_settings(request: Request) -> PurchaseSettings:
    return request.app.state.settings


def get_logger(request: Request) -> Any:
    return request.app.state.logger


def get_metrics(request: Request) -> MetricsRegistry:
    return request.app.state.metrics
