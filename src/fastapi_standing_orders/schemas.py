"""Request and response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fastapi_standing_orders.jobs import JobReport


class HealthResponse(BaseModel):
    ok: bool = True
    shop: str | None = None


class OkResponse(BaseModel):
    ok: bool = True


class StandingOrderResponse(BaseModel):
    data: Any = None


class SaveStandingOrderRequest(BaseModel):
    """Body of a proxy save; ``data`` is stored as-is."""

    customer_id: int | str | None = None
    data: Any = None


class JobResultSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: int | str = Field(alias="customerId")
    draft_id: int | str = Field(alias="draftId")


class JobFailureSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: int | str = Field(alias="customerId")
    error: str
    status: int | None = None
    draft_id: int | str | None = Field(default=None, alias="draftId")


class JobRunResponse(BaseModel):
    ok: bool
    day: str
    created: list[JobResultSchema] = Field(default_factory=list)
    failed: list[JobFailureSchema] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_report(cls, report: JobReport) -> JobRunResponse:
        return cls(
            ok=report.ok,
            day=report.day_key,
            created=[
                JobResultSchema(customer_id=r.customer_id, draft_id=r.draft_id)
                for r in report.created
            ],
            failed=[
                JobFailureSchema(
                    customer_id=f.customer_id,
                    error=f.error,
                    status=f.status,
                    draft_id=f.draft_id,
                )
                for f in report.failed
            ],
            error=report.aborted,
        )
