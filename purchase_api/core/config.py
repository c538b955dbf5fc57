"""Purchase service: environment-based configuration."""

from __future__ import annotations

from purchase_shared.config import BaseServiceSettings


class PurchaseSettings(BaseServiceSettings):
    """Settings specific to the purchase status service.

    The home-page deployment is the same service with ``GREETING`` and
    ``PORT`` overridden.
    """

    service_name: str = "purchase"

    # Responses
    greeting: str = "Hello from Purchase!"
    api_message: str = "Purchase API is running!"

    # Metrics
    metrics_enabled: bool = True
    metrics_namespace: str = ""


settings = PurchaseSettings()
