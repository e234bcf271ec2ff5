"""Daily standing order run: one draft order per customer and weekday."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from fastapi_standing_orders.client import AdminApiClient
from fastapi_standing_orders.exceptions import (
    ConfigurationError,
    InvoiceRequestError,
    RemoteApiError,
)
from fastapi_standing_orders.pagination import (
    DEFAULT_PAGE_SIZE,
    iter_customer_ids,
)
from fastapi_standing_orders.store import PreferenceStore

logger = logging.getLogger(__name__)

DAY_KEYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def weekday_key(day: date) -> str:
    # date.weekday() is Monday-based; DAY_KEYS starts on Sunday.
    return DAY_KEYS[(day.weekday() + 1) % 7]


def coerce_quantity(value: Any) -> int:
    """Turn a stored quantity into a non-negative integer (junk -> 0)."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number <= 0:
        return 0
    return int(number)


def _coerce_variant_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _day_quantity(product: dict[str, Any], day_key: str) -> Any:
    per_weekday = product.get("quantityPerWeekday")
    if isinstance(per_weekday, dict):
        return per_weekday.get(day_key, 0)
    return product.get(day_key, 0)


def build_line_items(document: Any, day_key: str) -> list[dict[str, int]]:
    """Line items for ``day_key``; empty when nothing is due that day."""
    if not isinstance(document, dict):
        return []
    products = document.get("products")
    if not isinstance(products, list):
        return []

    items = []
    for product in products:
        if not isinstance(product, dict):
            continue
        quantity = coerce_quantity(_day_quantity(product, day_key))
        if quantity <= 0:
            continue
        variant_id = _coerce_variant_id(product.get("variantId"))
        if variant_id is None:
            logger.warning(
                "Skipping product without usable variantId: %r",
                product.get("variantId"),
            )
            continue
        items.append({"variant_id": variant_id, "quantity": quantity})
    return items


@dataclass
class JobResult:
    customer_id: int | str
    draft_id: int | str


@dataclass
class JobFailure:
    customer_id: int | str
    error: str
    status: int | None = None
    draft_id: int | str | None = None


@dataclass
class JobReport:
    day_key: str
    created: list[JobResult] = field(default_factory=list)
    failed: list[JobFailure] = field(default_factory=list)
    aborted: str | None = None

    @property
    def ok(self) -> bool:
        return self.aborted is None


class StandingOrderJob:
    """Creates today's draft orders for every customer, one at a time.

    A failing customer is recorded and skipped. The run stops early only
    on failures that would repeat for every customer: missing
    configuration, rejected credentials, a failed customer page, or
    ``max_consecutive_failures`` customers failing in a row (``0``
    disables that limit).
    """

    def __init__(
        self,
        client: AdminApiClient,
        store: PreferenceStore | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        send_invoice: bool = True,
        max_consecutive_failures: int = 10,
    ) -> None:
        self.client = client
        self.store = store or PreferenceStore(client)
        self.page_size = page_size
        self.send_invoice = send_invoice
        self.max_consecutive_failures = max_consecutive_failures

    async def process_customer(
        self, customer_id: int | str, day_key: str
    ) -> JobResult | None:
        """Run fetch, decide, create and invoice for one customer."""
        document = await self.store.get(customer_id)
        items = build_line_items(document, day_key)
        if not items:
            return None

        draft = await self.client.create_draft_order(
            customer_id,
            items,
            note=f"Standing order for {day_key.upper()}",
        )
        if self.send_invoice:
            try:
                await self.client.send_draft_order_invoice(draft["id"])
            except RemoteApiError as exc:
                raise InvoiceRequestError(draft["id"], exc) from exc
        logger.info(
            "Created draft order %s for customer %s (%d items)",
            draft["id"],
            customer_id,
            len(items),
        )
        return JobResult(customer_id=customer_id, draft_id=draft["id"])

    async def run_daily(self, today: date | None = None) -> JobReport:
        day_key = weekday_key(today or date.today())
        report = JobReport(day_key=day_key)
        consecutive_failures = 0
        logger.info("Standing order run started for %s", day_key)

        customers = iter_customer_ids(self.client, self.page_size)
        try:
            async for customer_id in customers:
                try:
                    result = await self.process_customer(customer_id, day_key)
                except ConfigurationError as exc:
                    report.aborted = str(exc)
                    break
                except RemoteApiError as exc:
                    report.failed.append(
                        JobFailure(
                            customer_id=customer_id,
                            error=str(exc),
                            status=exc.status,
                            draft_id=(
                                exc.draft_id
                                if isinstance(exc, InvoiceRequestError)
                                else None
                            ),
                        )
                    )
                    logger.warning(
                        "Standing order for customer %s failed: %s",
                        customer_id,
                        exc,
                    )
                    if exc.is_auth_failure:
                        report.aborted = f"Admin API rejected credentials: {exc}"
                        break
                    consecutive_failures += 1
                    if (
                        self.max_consecutive_failures
                        and consecutive_failures >= self.max_consecutive_failures
                    ):
                        report.aborted = (
                            f"{consecutive_failures} consecutive customer "
                            f"failures, last: {exc}"
                        )
                        break
                    continue

                consecutive_failures = 0
                if result is not None:
                    report.created.append(result)
        except (ConfigurationError, RemoteApiError) as exc:
            report.aborted = f"Listing customers failed: {exc}"
        finally:
            await customers.aclose()

        if report.aborted:
            logger.error("Standing order run aborted: %s", report.aborted)
        logger.info(
            "Standing order run for %s finished: %d created, %d failed",
            day_key,
            len(report.created),
            len(report.failed),
        )
        return report
