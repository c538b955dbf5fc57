"""Purchase service: API status endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from purchase_api.core.config import PurchaseSettings
from purchase_api.deps import get_settings

router = APIRouter(prefix="/api", tags=["api"])


class ApiStatusMessage(BaseModel):
    message: str


@router.api_route(
    "", methods=["GET", "HEAD"], response_model=ApiStatusMessage, summary="API status"
)
async def api_status(
    settings: PurchaseSettings = Depends(get_settings),
) -> ApiStatusMessage:
    return ApiStatusMessage(message=settings.api_message)
