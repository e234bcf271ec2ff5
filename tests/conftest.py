"""Shared fixtures for fastapi-standing-orders tests."""

from __future__ import annotations

import json
import re
from collections.abc import AsyncIterator

import httpx
import pytest

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.config import StandingOrdersConfig
from fastapi_standing_orders.retry import RetryPolicy
from fastapi_standing_orders.signature import compute_signature

SHOP = "demo-shop.myshopify.com"
TOKEN = "shpat_test"
SECRET = "proxy-secret"
API_PREFIX = "/admin/api/2024-10"

FAST_POLICY = RetryPolicy(max_attempts=3, timeout_seconds=5, backoff_seconds=0)

_METAFIELDS_OF = re.compile(r"^/customers/(\d+)/metafields\.json$")
_METAFIELD = re.compile(r"^/metafields/(\d+)\.json$")
_INVOICE = re.compile(r"^/draft_orders/(\d+)/send_invoice\.json$")


class FakeAdminApi:
    """In-memory admin API served through httpx.MockTransport."""

    def __init__(self, customers: list[int] | None = None, page_size: int = 2):
        self.customers = list(customers or [])
        self.page_size = page_size
        self.metafields: dict[int, dict] = {}
        self.draft_orders: list[dict] = []
        self.invoices: list[int] = []
        self.requests: list[httpx.Request] = []
        # path -> statuses returned (in order) before the real handler runs
        self.failures: dict[str, list[int]] = {}
        self._next_id = 1000

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def fail(self, path: str, *statuses: int) -> None:
        self.failures.setdefault(path, []).extend(statuses)

    def add_document(self, customer_id: int, document) -> dict:
        return self._store_metafield(
            customer_id, json.dumps(document)
        )

    def add_raw_value(self, customer_id: int, value: str) -> dict:
        return self._store_metafield(customer_id, value)

    def documents_of(self, customer_id: int) -> list[dict]:
        return [
            m
            for m in self.metafields.values()
            if m["owner_id"] == customer_id
            and m["namespace"] == "standing"
            and m["key"] == "weekly"
        ]

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _store_metafield(self, customer_id: int, value: str) -> dict:
        metafield = {
            "id": self._new_id(),
            "namespace": "standing",
            "key": "weekly",
            "owner_resource": "customer",
            "owner_id": customer_id,
            "type": "json",
            "value": value,
        }
        self.metafields[metafield["id"]] = metafield
        return metafield

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix(API_PREFIX)
        queued = self.failures.get(path)
        if queued:
            return httpx.Response(queued.pop(0), text="simulated failure")

        if request.method == "GET" and path == "/customers.json":
            return self._list_customers(request)
        if request.method == "GET" and (match := _METAFIELDS_OF.match(path)):
            owner = int(match.group(1))
            return httpx.Response(
                200,
                json={
                    "metafields": [
                        m for m in self.metafields.values() if m["owner_id"] == owner
                    ]
                },
            )
        if request.method == "POST" and path == "/metafields.json":
            data = json.loads(request.content)["metafield"]
            metafield = self._store_metafield(data["owner_id"], data["value"])
            metafield.update(namespace=data["namespace"], key=data["key"])
            return httpx.Response(201, json={"metafield": metafield})
        if request.method == "PUT" and (match := _METAFIELD.match(path)):
            metafield = self.metafields[int(match.group(1))]
            metafield["value"] = json.loads(request.content)["metafield"]["value"]
            return httpx.Response(200, json={"metafield": metafield})
        if request.method == "POST" and path == "/draft_orders.json":
            draft = json.loads(request.content)["draft_order"]
            draft["id"] = self._new_id()
            self.draft_orders.append(draft)
            return httpx.Response(201, json={"draft_order": draft})
        if request.method == "POST" and (match := _INVOICE.match(path)):
            self.invoices.append(int(match.group(1)))
            return httpx.Response(201, json={"draft_order_invoice": {}})
        return httpx.Response(404, json={"errors": "Not Found"})

    def _list_customers(self, request: httpx.Request) -> httpx.Response:
        limit = min(int(request.url.params["limit"]), self.page_size)
        token = request.url.params.get("page_info")
        offset = int(token.removeprefix("p")) if token else 0
        page = self.customers[offset : offset + limit]
        headers = {}
        if offset + limit < len(self.customers):
            next_url = (
                f"https://{SHOP}{API_PREFIX}/customers.json"
                f"?limit={limit}&page_info=p{offset + limit}"
            )
            headers["Link"] = f'<{next_url}>; rel="next"'
        return httpx.Response(
            200,
            json={"customers": [{"id": c} for c in page]},
            headers=headers,
        )


def sign(params: dict[str, str], secret: str = SECRET) -> dict[str, str]:
    """Return ``params`` plus the proxy signature."""
    return {**params, "signature": compute_signature(params, secret)}


@pytest.fixture()
def fake_api() -> FakeAdminApi:
    return FakeAdminApi()


@pytest.fixture()
async def admin_client(fake_api: FakeAdminApi) -> AsyncIterator[AdminApiClient]:
    client = AdminApiClient(
        SHOP,
        TOKEN,
        policy=FAST_POLICY,
        transport=fake_api.transport(),
    )
    yield client
    await client.aclose()


@pytest.fixture()
def config() -> StandingOrdersConfig:
    return StandingOrdersConfig(
        shop=SHOP,
        admin_access_token=TOKEN,
        app_proxy_shared_secret=SECRET,
        admin_backoff_seconds=0,
        proxy_backoff_seconds=0,
    )
