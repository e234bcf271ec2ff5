"""Batch job trigger endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from fastapi_standing_orders.dependencies import get_job
from fastapi_standing_orders.schemas import JobRunResponse

router = APIRouter(prefix="/jobs")


@router.post(
    "/standing-orders/run",
    response_model=JobRunResponse,
    responses={500: {"model": JobRunResponse}},
)
async def run_standing_orders(job=Depends(get_job)):
    """Create today's draft orders; an aborted run answers 500."""
    report = await job.run_daily()
    response = JobRunResponse.from_report(report)
    if not report.ok:
        return JSONResponse(
            status_code=500,
            content=response.model_dump(by_alias=True),
        )
    return response
