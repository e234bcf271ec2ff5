"""App proxy endpoints for reading and saving standing orders."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from fastapi_standing_orders.dependencies import (
    get_preference_store,
    verify_proxy_request,
)
from fastapi_standing_orders.exceptions import MissingRequiredFieldError
from fastapi_standing_orders.schemas import (
    OkResponse,
    SaveStandingOrderRequest,
    StandingOrderResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/proxy",
    dependencies=[Depends(verify_proxy_request)],
)


@router.get("/standing-orders", response_model=StandingOrderResponse)
async def load_standing_orders(
    customer_id: str | None = None,
    store=Depends(get_preference_store),
) -> StandingOrderResponse:
    """Return the saved standing order document of a customer."""
    if not customer_id:
        raise MissingRequiredFieldError("customer_id")
    return StandingOrderResponse(data=await store.get(customer_id))


@router.post("/standing-orders", response_model=OkResponse)
async def save_standing_orders(
    body: SaveStandingOrderRequest | None = None,
    store=Depends(get_preference_store),
) -> OkResponse:
    """Create or replace the standing order document of a customer."""
    if body is None or body.customer_id in (None, ""):
        raise MissingRequiredFieldError("customer_id")
    await store.save(body.customer_id, body.data)
    return OkResponse()
