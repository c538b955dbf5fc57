"""Purchase service: plain-text home page."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from purchase_api.core.config import PurchaseSettings
from purchase_api.deps import get_logger, get_settings

router = APIRouter(tags=["home"])


@router.api_route(
    "/", methods=["GET", "HEAD"], response_class=PlainTextResponse, summary="Greeting"
)
async def home(
    settings: PurchaseSettings = Depends(get_settings),
    logger: Any = Depends(get_logger),
) -> str:
    logger.info("home_page_served")
    return settings.greeting
