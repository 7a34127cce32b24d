"""Synchronous commit report router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from commitreport.api.deps import get_report_service
from commitreport.api.schemas.common import ERROR_RESPONSES
from commitreport.api.schemas.report import ReportRequest
from commitreport.services.report_service import ReportService

router = APIRouter(responses=ERROR_RESPONSES)

MARKDOWN = "text/markdown; charset=utf-8"


@router.post("", response_model=list[str])
async def commit_report(
    body: ReportRequest,
    svc: ReportService = Depends(get_report_service),
) -> list[str]:
    """One LLM summary per repository, in request (or registry) order."""
    return await svc.generate_report(body.date_range(), body.repository_list())


@router.post("/raw", response_class=PlainTextResponse)
async def raw_commit_report(
    body: ReportRequest,
    svc: ReportService = Depends(get_report_service),
) -> PlainTextResponse:
    """Markdown listing of every commit in range, no LLM involved."""
    markdown = await svc.raw_commits(body.date_range(), body.repository_list())
    return PlainTextResponse(markdown, media_type=MARKDOWN)


@router.post("/summary", response_class=PlainTextResponse)
async def summary_report(
    body: ReportRequest,
    svc: ReportService = Depends(get_report_service),
) -> PlainTextResponse:
    summary = await svc.summary(body.date_range(), body.repository_list())
    return PlainTextResponse(summary, media_type=MARKDOWN)
