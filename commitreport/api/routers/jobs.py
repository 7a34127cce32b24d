"""Async report jobs router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from commitreport.api.deps import get_job_service
from commitreport.api.schemas.common import ErrorDetail
from commitreport.api.schemas.job import JobList, JobStatus, JobSubmitted
from commitreport.api.schemas.report import ReportRequest
from commitreport.services import NotFoundError
from commitreport.services.job_service import ReportJobService

router = APIRouter()


@router.post(
    "",
    response_model=JobSubmitted,
    status_code=202,
    responses={422: {"model": ErrorDetail}},
)
async def submit_report(
    body: ReportRequest,
    svc: ReportJobService = Depends(get_job_service),
) -> JobSubmitted:
    job_id = await svc.submit(body.date_range(), body.repository_list())
    return JobSubmitted(
        job_id=job_id,
        message=f"Report queued. Poll /api/v1/async-reports/{job_id} for status.",
    )


@router.get("", response_model=JobList)
async def list_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    svc: ReportJobService = Depends(get_job_service),
) -> JobList:
    result = await svc.list(page=page, page_size=limit)
    return JobList(
        reports=[JobStatus.from_record(r) for r in result["items"]],
        total=result["total"],
        page=result["page"],
        limit=result["page_size"],
        counts=result["counts"],
    )


@router.get("/{job_id}", response_model=JobStatus, responses={404: {"model": ErrorDetail}})
async def report_status(
    job_id: str,
    svc: ReportJobService = Depends(get_job_service),
) -> JobStatus:
    try:
        parsed = uuid.UUID(job_id)
    except ValueError:
        raise NotFoundError("report job not found") from None
    return JobStatus.from_record(await svc.status(parsed))
