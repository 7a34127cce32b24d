"""Async report job schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from commitreport.queue.base import JobRecord


class JobSubmitted(BaseModel):
    job_id: uuid.UUID
    status: str = "queued"
    message: str


class JobStatus(BaseModel):
    job_id: uuid.UUID
    status: str
    progress: int
    completed: bool
    failed: bool
    reason: str | None = None
    data: list[str] | None = None
    attempts_made: int
    max_attempts: int
    created_at: datetime
    finished_at: datetime | None = None

    @classmethod
    def from_record(cls, record: JobRecord) -> JobStatus:
        return cls(
            job_id=record.id,
            status=record.status,
            progress=record.progress,
            completed=record.status == "completed",
            failed=record.status == "failed",
            reason=record.failure_reason if record.status == "failed" else None,
            data=record.result if record.status == "completed" else None,
            attempts_made=record.attempts_made,
            max_attempts=record.max_attempts,
            created_at=record.created_at,
            finished_at=record.finished_at,
        )


class JobList(BaseModel):
    reports: list[JobStatus]
    total: int
    page: int
    limit: int
    counts: dict[str, int]
