"""Application factory and process entry point."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.exceptions import register_exception_handlers
from fastapi_standing_orders.router import create_standing_orders_router

logger = logging.getLogger(__name__)


def create_app(
    config: StandingOrdersConfig | None = None,
    admin_client: AdminApiClient | None = None,
) -> FastAPI:
    """Build the service app; config defaults to the environment."""
    config = config or StandingOrdersConfig()
    app = FastAPI(title="Standing Orders")
    register_exception_handlers(app)
    app.include_router(
        create_standing_orders_router(config=config, admin_client=admin_client)
    )
    return app


def main() -> None:
    config = StandingOrdersConfig()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Standing Orders backend listening on %d", config.port)
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port)
