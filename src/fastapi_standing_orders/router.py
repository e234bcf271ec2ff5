"""Router factory for fastapi-standing-orders."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.exceptions import register_exception_handlers
from fastapi_standing_orders.routes.health import router as health_router
from fastapi_standing_orders.routes.jobs import router as jobs_router
from fastapi_standing_orders.routes.proxy import router as proxy_router
from fastapi_standing_orders.store import PreferenceStore


def create_standing_orders_router(
    *,
    config: StandingOrdersConfig,
    admin_client: AdminApiClient | None = None,
) -> APIRouter:
    """Create a configured API router.

    When no ``admin_client`` is given one is built from ``config`` and
    closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        config.warn_missing()
        client = admin_client or AdminApiClient(
            config.shop,
            config.admin_access_token,
            api_version=config.api_version,
            policy=config.admin_retry_policy(),
        )
        app.state.standing_orders_config = config
        app.state.standing_orders_admin_client = client
        app.state.standing_orders_store = PreferenceStore(
            client, policy=config.proxy_retry_policy()
        )
        register_exception_handlers(app)
        try:
            yield
        finally:
            if admin_client is None:
                await client.aclose()

    router = APIRouter(lifespan=lifespan)
    router.include_router(health_router)
    router.include_router(proxy_router)
    router.include_router(jobs_router)
    return router
