"""Purchase service: Prometheus metrics export."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from purchase_api.deps import get_logger, get_metrics
from purchase_shared.errors import error_response
from purchase_shared.metrics import MetricsRegistry

router = APIRouter(tags=["metrics"])


@router.api_route("/metrics", methods=["GET", "HEAD"], summary="Prometheus exposition")
def metrics(
    registry: MetricsRegistry = Depends(get_metrics),
    logger: Any = Depends(get_logger),
) -> Response:
    try:
        payload, content_type = registry.snapshot()
    except Exception:
        # The exception detail goes to the log only, never to the client
        logger.exception("metrics_export_failed")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "metrics_unavailable",
            "Failed to export metrics.",
        )
    return Response(content=payload, media_type=content_type)
