"""ReportJobDAO — report_jobs table operations."""

import uuid
from datetime import datetime, timedelta

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commitreport.dao.base import BaseDAO
from commitreport.models.report_job import ReportJob

JOB_STATES = ("queued", "active", "completed", "failed")


class ReportJobDAO(BaseDAO[ReportJob]):
    model = ReportJob

    # ── read ──────────────────────────────────────────────────────────────

    async def list_recent(
        self, session: AsyncSession, offset: int = 0, limit: int = 20
    ) -> list[ReportJob]:
        """All states merged, newest first."""
        return await self.list_offset(session, select(ReportJob), offset, limit)

    async def count_by_status(self, session: AsyncSession) -> dict[str, int]:
        """Return ``{state: count}`` with every state present (zero-filled)."""
        stmt = select(ReportJob.status, func.count()).group_by(ReportJob.status)
        rows = await session.execute(stmt)
        counts = dict.fromkeys(JOB_STATES, 0)
        for status, n in rows:
            counts[status] = n
        return counts

    # ── worker ────────────────────────────────────────────────────────────

    async def claim_next(
        self, session: AsyncSession, *, now: datetime, lease_seconds: float
    ) -> ReportJob | None:
        """Lock and activate the oldest runnable job.

        Runnable means ``queued`` with ``run_after <= now``, or ``active``
        with a lease older than *lease_seconds* (the worker that held it is
        presumed dead). ``SKIP LOCKED`` lets concurrent workers share the table.
        """
        stale_before = now - timedelta(seconds=lease_seconds)
        stmt = (
            select(ReportJob)
            .where(
                or_(
                    and_(ReportJob.status == "queued", ReportJob.run_after <= now),
                    and_(ReportJob.status == "active", ReportJob.processed_at < stale_before),
                )
            )
            .order_by(ReportJob.run_after.asc(), ReportJob.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        job = result.scalars().first()
        if job is None:
            return None

        if job.status == "queued":
            job.attempts_made += 1
        job.status = "active"
        job.processed_at = now
        await session.flush()
        await session.refresh(job)
        return job

    async def set_progress(self, session: AsyncSession, pk: uuid.UUID, progress: int) -> None:
        self._require_pk(pk)
        stmt = update(ReportJob).where(ReportJob.id == pk).values(progress=progress)
        await session.execute(stmt)
