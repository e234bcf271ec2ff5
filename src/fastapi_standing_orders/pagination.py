"""Cursor pagination over the customer list."""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncGenerator

import httpx

from fastapi_standing_orders.client import LIST_CUSTOMERS, AdminApiClient
from fastapi_standing_orders.exceptions import RemoteApiError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 250

_LINK_ENTRY = re.compile(r"<([^>]*)>\s*;\s*rel=\"?([^\",;]+)\"?")
_PAGE_INFO = re.compile(r"[?&]page_info=([^&>]+)")


def parse_next_page_info(link_header: str | None) -> str | None:
    """Extract the ``page_info`` token of the ``rel="next"`` link.

    Returns ``None`` when there is no next page.
    """
    if not link_header:
        return None
    for url, rel in _LINK_ENTRY.findall(link_header):
        if rel.strip() != "next":
            continue
        match = _PAGE_INFO.search(url)
        if match:
            return match.group(1)
    return None


def _page_customers(response: httpx.Response) -> list[dict]:
    """Customer records of one page; a malformed body is a remote error."""
    try:
        body = response.json()
    except ValueError:
        body = None
    customers = (body.get("customers") or []) if isinstance(body, dict) else None
    if not isinstance(customers, list) or not all(
        isinstance(customer, dict) and "id" in customer
        for customer in customers
    ):
        raise RemoteApiError(
            response.status_code, LIST_CUSTOMERS.path, response.text
        )
    return customers


async def iter_customer_ids(
    client: AdminApiClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AsyncGenerator[int, None]:
    """Yield every customer id, fetching pages as the caller consumes them.

    The iterator is single-pass. A failed page request raises
    ``RemoteApiError`` out of the iteration.
    """
    cursor: str | None = None
    page = 0
    while True:
        response = await client.list_customers_page(page_size, cursor)
        page += 1
        customers = _page_customers(response)
        logger.debug("Customer page %d: %d customers", page, len(customers))

        for customer in customers:
            yield customer["id"]

        cursor = parse_next_page_info(response.headers.get("link"))
        if cursor is None:
            return
