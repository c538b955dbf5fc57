"""Purchase service: health-check endpoints."""

from __future__ import annotations

from purchase_shared.health import create_health_router

# No readiness checks beyond draining; the service has no backing stores.
router = create_health_router()
