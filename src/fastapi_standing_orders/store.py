"""Standing order preferences kept in a customer metafield."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.retry import RetryPolicy

logger = logging.getLogger(__name__)

NAMESPACE = "standing"
KEY = "weekly"


def find_preference_metafield(
    metafields: list[dict[str, Any]],
) -> dict[str, Any] | None:
    for metafield in metafields:
        if metafield.get("namespace") == NAMESPACE and metafield.get("key") == KEY:
            return metafield
    return None


def parse_document(metafield: dict[str, Any] | None) -> Any:
    """Decode the stored JSON value; malformed values count as absent."""
    if metafield is None:
        return None
    value = metafield.get("value")
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        logger.warning(
            "Metafield %s holds malformed JSON, ignoring it",
            metafield.get("id"),
        )
        return None


class PreferenceStore:
    """Get / upsert of the ``standing.weekly`` document of a customer.

    Saves for the same customer are serialized inside this process so the
    lookup-then-write cannot create a second record. Saves racing from
    separate processes are not covered.
    """

    def __init__(
        self,
        client: AdminApiClient,
        *,
        policy: RetryPolicy | None = None,
    ) -> None:
        self.client = client
        self.policy = policy
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _customer_lock(
        self, customer_id: int | str
    ) -> AsyncIterator[None]:
        # Entries are dropped once no save holds or awaits them.
        key = str(customer_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _find(self, customer_id: int | str) -> dict[str, Any] | None:
        metafields = await self.client.list_customer_metafields(
            customer_id, policy=self.policy
        )
        return find_preference_metafield(metafields)

    async def get(self, customer_id: int | str) -> Any:
        """Return the customer's document, or ``None`` if there is none."""
        return parse_document(await self._find(customer_id))

    async def save(self, customer_id: int | str, document: Any) -> None:
        """Update the existing document in place or create it."""
        async with self._customer_lock(customer_id):
            existing = await self._find(customer_id)
            if existing is not None:
                await self.client.update_metafield(
                    existing["id"], document, policy=self.policy
                )
                logger.info(
                    "Updated standing order metafield %s for customer %s",
                    existing["id"],
                    customer_id,
                )
            else:
                created = await self.client.create_metafield(
                    namespace=NAMESPACE,
                    key=KEY,
                    owner_id=customer_id,
                    value=document,
                    policy=self.policy,
                )
                logger.info(
                    "Created standing order metafield %s for customer %s",
                    created.get("id"),
                    customer_id,
                )
