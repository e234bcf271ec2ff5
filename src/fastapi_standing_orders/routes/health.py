"""Liveness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.dependencies import get_config
from fastapi_standing_orders.schemas import HealthResponse

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Standing Order App backend is running"


@router.get("/health", response_model=HealthResponse)
async def health(
    config: StandingOrdersConfig = Depends(get_config),
) -> HealthResponse:
    """Healthcheck that also shows which shop is configured."""
    return HealthResponse(shop=config.shop)
