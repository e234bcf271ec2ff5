"""Commerce admin API client."""

from __future__ import annotations

import asyncio
import json as jsonlib
import logging
from typing import Any

import httpx

from fastapi_standing_orders.exceptions import (
    ConfigurationError,
    RemoteApiError,
)
from fastapi_standing_orders.retry import (
    ADMIN_POLICY,
    Endpoint,
    Exhausted,
    RetryPolicy,
    Sleep,
    Success,
    execute,
)

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"

LIST_CUSTOMERS = Endpoint("GET", "/customers.json")
LIST_CUSTOMER_METAFIELDS = Endpoint(
    "GET", "/customers/{customer_id}/metafields.json"
)
CREATE_METAFIELD = Endpoint("POST", "/metafields.json")
UPDATE_METAFIELD = Endpoint("PUT", "/metafields/{metafield_id}.json")
CREATE_DRAFT_ORDER = Endpoint("POST", "/draft_orders.json")
SEND_DRAFT_ORDER_INVOICE = Endpoint(
    "POST", "/draft_orders/{draft_order_id}/send_invoice.json"
)


class AdminApiClient:
    """Admin API access through the retrying executor.

    Every call that does not end in ``Success`` raises ``RemoteApiError``.
    Without a shop domain or access token every call raises
    ``ConfigurationError``.
    """

    def __init__(
        self,
        shop: str | None,
        access_token: str | None,
        *,
        api_version: str = "2024-10",
        policy: RetryPolicy = ADMIN_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self.shop = shop
        self.policy = policy
        self._access_token = access_token
        self._sleep = sleep or asyncio.sleep
        self._http = httpx.AsyncClient(
            base_url=f"https://{shop or 'unconfigured.invalid'}"
            f"/admin/api/{api_version}",
            headers={
                ACCESS_TOKEN_HEADER: access_token or "",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self) -> AdminApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        endpoint: Endpoint,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        policy: RetryPolicy | None = None,
    ) -> httpx.Response:
        """Run ``endpoint`` and return the successful response."""
        if not self.shop or not self._access_token:
            raise ConfigurationError(
                "Admin API is not configured (SHOP / ADMIN_ACCESS_TOKEN)"
            )

        outcome = await execute(
            self._http,
            endpoint,
            policy or self.policy,
            json=json,
            params=params,
            sleep=self._sleep,
        )

        if isinstance(outcome, Success):
            return outcome.response
        if isinstance(outcome, Exhausted):
            last = outcome.last
            raise RemoteApiError(
                last.status_code, endpoint.path, last.body or last.error
            )
        raise RemoteApiError(outcome.status_code, endpoint.path, outcome.body)

    async def call(
        self,
        endpoint: Endpoint,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        policy: RetryPolicy | None = None,
    ) -> Any:
        """Run ``endpoint`` and return the parsed JSON body."""
        response = await self.request(
            endpoint, json=json, params=params, policy=policy
        )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteApiError(
                response.status_code, endpoint.path, response.text
            ) from exc

    # -- customers -----------------------------------------------------

    async def list_customers_page(
        self,
        limit: int,
        page_info: str | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> httpx.Response:
        """Fetch one page of customer ids.

        The raw response is returned because the continuation token
        lives in its ``Link`` header.
        """
        params: dict[str, Any] = {"limit": limit, "fields": "id"}
        if page_info:
            params["page_info"] = page_info
        return await self.request(LIST_CUSTOMERS, params=params, policy=policy)

    # -- metafields ----------------------------------------------------

    async def list_customer_metafields(
        self,
        customer_id: int | str,
        *,
        policy: RetryPolicy | None = None,
    ) -> list[dict[str, Any]]:
        body = await self.call(
            LIST_CUSTOMER_METAFIELDS.bind(customer_id=customer_id),
            policy=policy,
        )
        return body.get("metafields") or []

    async def create_metafield(
        self,
        *,
        namespace: str,
        key: str,
        owner_id: int | str,
        value: Any,
        owner_resource: str = "customer",
        policy: RetryPolicy | None = None,
    ) -> dict[str, Any]:
        payload = {
            "metafield": {
                "namespace": namespace,
                "key": key,
                "owner_resource": owner_resource,
                "owner_id": int(owner_id),
                "type": "json",
                "value": jsonlib.dumps(value),
            }
        }
        body = await self.call(CREATE_METAFIELD, json=payload, policy=policy)
        return body.get("metafield") or {}

    async def update_metafield(
        self,
        metafield_id: int | str,
        value: Any,
        *,
        policy: RetryPolicy | None = None,
    ) -> dict[str, Any]:
        payload = {
            "metafield": {
                "id": metafield_id,
                "type": "json",
                "value": jsonlib.dumps(value),
            }
        }
        body = await self.call(
            UPDATE_METAFIELD.bind(metafield_id=metafield_id),
            json=payload,
            policy=policy,
        )
        return body.get("metafield") or {}

    # -- draft orders --------------------------------------------------

    async def create_draft_order(
        self,
        customer_id: int | str,
        line_items: list[dict[str, int]],
        note: str,
    ) -> dict[str, Any]:
        payload = {
            "draft_order": {
                "customer": {"id": int(customer_id)},
                "line_items": line_items,
                "note": note,
                "use_customer_default_address": True,
            }
        }
        body = await self.call(CREATE_DRAFT_ORDER, json=payload)
        draft = body.get("draft_order")
        if not isinstance(draft, dict) or "id" not in draft:
            raise RemoteApiError(
                None, CREATE_DRAFT_ORDER.path, "response has no draft_order id"
            )
        return draft

    async def send_draft_order_invoice(
        self, draft_order_id: int | str
    ) -> dict[str, Any]:
        endpoint = SEND_DRAFT_ORDER_INVOICE.bind(draft_order_id=draft_order_id)
        logger.info("Sending invoice for draft order %s", draft_order_id)
        return await self.call(endpoint, json={"draft_order_invoice": {}})
