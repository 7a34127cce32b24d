"""Shared response schemas."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Body of every non-2xx JSON response."""

    detail: str


class HealthResponse(BaseModel):
    status: str
    repositories: int
    job_backend: str


ERROR_RESPONSES: dict[int | str, dict] = {
    422: {"model": ErrorDetail, "description": "Invalid request or date range"},
    502: {"model": ErrorDetail, "description": "GitHub or LLM API failure"},
}
