"""Shared plumbing for the purchase status services."""

from purchase_shared.config import BaseServiceSettings
from purchase_shared.logging import get_logger, setup_logging
from purchase_shared.metrics import MetricsRegistry

__all__ = ["setup_logging", "get_logger", "BaseServiceSettings", "MetricsRegistry"]
