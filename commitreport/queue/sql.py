"""PostgreSQL job queue on the report_jobs table."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitreport.dao.report_job_dao import ReportJobDAO
from commitreport.models.report_job import ReportJob
from commitreport.queue.base import (
    DEFAULT_BACKOFF_DELAY,
    DEFAULT_LEASE_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    JobQueue,
    JobRecord,
    apply_failure,
    utcnow,
)


def _to_record(row: ReportJob) -> JobRecord:
    return JobRecord(
        id=row.id,
        payload=dict(row.payload),
        status=row.status,  # type: ignore[arg-type]
        progress=row.progress,
        result=list(row.result) if row.result is not None else None,
        failure_reason=row.failure_reason,
        attempts_made=row.attempts_made,
        max_attempts=row.max_attempts,
        backoff_delay=row.backoff_delay,
        created_at=row.created_at,
        run_after=row.run_after,
        processed_at=row.processed_at,
        finished_at=row.finished_at,
    )


class SqlJobQueue(JobQueue):
    """Durable queue shared by every API process and worker.

    Each operation runs in its own short transaction; claiming uses
    ``SELECT ... FOR UPDATE SKIP LOCKED`` so concurrent workers never
    receive the same runnable row.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dao: ReportJobDAO | None = None,
        *,
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._dao = dao or ReportJobDAO()
        self._lease_seconds = lease_seconds
        self._clock = clock

    async def enqueue(
        self,
        job_id: uuid.UUID,
        payload: dict[str, Any],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_delay: float = DEFAULT_BACKOFF_DELAY,
    ) -> JobRecord:
        now = self._clock()
        async with self._session_factory() as session:
            async with session.begin():
                row = await self._dao.create(
                    session,
                    id=job_id,
                    status="queued",
                    progress=0,
                    payload=payload,
                    max_attempts=max_attempts,
                    backoff_delay=backoff_delay,
                    run_after=now,
                )
                return _to_record(row)

    async def get(self, job_id: uuid.UUID) -> JobRecord | None:
        async with self._session_factory() as session:
            row = await self._dao.get_by_id(session, job_id)
            return None if row is None else _to_record(row)

    async def list_jobs(self, offset: int = 0, limit: int = 20) -> list[JobRecord]:
        async with self._session_factory() as session:
            rows = await self._dao.list_recent(session, offset, limit)
            return [_to_record(r) for r in rows]

    async def counts(self) -> dict[str, int]:
        async with self._session_factory() as session:
            return await self._dao.count_by_status(session)

    async def claim(self) -> JobRecord | None:
        async with self._session_factory() as session:
            async with session.begin():
                row = await self._dao.claim_next(
                    session, now=self._clock(), lease_seconds=self._lease_seconds
                )
                return None if row is None else _to_record(row)

    async def update_progress(self, job_id: uuid.UUID, progress: int) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await self._dao.set_progress(session, job_id, progress)

    async def complete(self, job_id: uuid.UUID, result: list[str]) -> JobRecord:
        async with self._session_factory() as session:
            async with session.begin():
                row = await self._require(session, job_id)
                row = await self._dao.update(
                    session,
                    row.id,
                    status="completed",
                    result=list(result),
                    failure_reason=None,
                    finished_at=self._clock(),
                )
                return _to_record(row)  # type: ignore[arg-type]

    async def fail(self, job_id: uuid.UUID, reason: str, *, retry: bool = True) -> JobRecord:
        async with self._session_factory() as session:
            async with session.begin():
                row = await self._require(session, job_id)
                record = apply_failure(_to_record(row), reason, retry=retry, now=self._clock())
                await self._dao.update(
                    session,
                    row.id,
                    status=record.status,
                    failure_reason=record.failure_reason,
                    run_after=record.run_after,
                    finished_at=record.finished_at,
                )
                return record

    async def _require(self, session: AsyncSession, job_id: uuid.UUID) -> ReportJob:
        row = await self._dao.get_by_id(session, job_id)
        if row is None:
            raise KeyError(f"job {job_id} not found")
        return row
