"""Dependency providers for request handlers."""

from __future__ import annotations

from fastapi import Depends, Request

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.exceptions import InvalidSignatureError
from fastapi_standing_orders.jobs import StandingOrderJob
from fastapi_standing_orders.signature import SIGNATURE_PARAM, verify_signature
from fastapi_standing_orders.store import PreferenceStore


def get_config(request: Request) -> StandingOrdersConfig:
    """Read config from FastAPI app state."""
    return request.app.state.standing_orders_config


def get_admin_client(request: Request) -> AdminApiClient:
    """Read the admin API client from FastAPI app state."""
    return request.app.state.standing_orders_admin_client


def get_preference_store(request: Request) -> PreferenceStore:
    """Read the proxy-facing preference store from FastAPI app state."""
    return request.app.state.standing_orders_store


def get_job(
    client: AdminApiClient = Depends(get_admin_client),
    config: StandingOrdersConfig = Depends(get_config),
) -> StandingOrderJob:
    """Create a StandingOrderJob for the current request."""
    return StandingOrderJob(
        client,
        page_size=config.customers_page_size,
        send_invoice=config.job_send_invoice,
        max_consecutive_failures=config.job_max_consecutive_failures,
    )


def verify_proxy_request(
    request: Request,
    config: StandingOrdersConfig = Depends(get_config),
) -> None:
    """Reject requests whose query string is not signed by the proxy."""
    query = request.query_params
    if not verify_signature(
        query.multi_items(),
        query.get(SIGNATURE_PARAM),
        config.app_proxy_shared_secret,
    ):
        raise InvalidSignatureError()
