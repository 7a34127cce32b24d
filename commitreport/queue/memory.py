"""In-process job queue for tests and single-process deployments."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from commitreport.queue.base import (
    DEFAULT_BACKOFF_DELAY,
    DEFAULT_LEASE_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    JOB_STATES,
    JobQueue,
    JobRecord,
    apply_failure,
    utcnow,
)


class InMemoryJobQueue(JobQueue):
    """Dict-backed queue. Returned records are copies; callers cannot mutate state."""

    def __init__(
        self,
        *,
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._jobs: dict[uuid.UUID, JobRecord] = {}
        self._order: dict[uuid.UUID, int] = {}
        self._lock = asyncio.Lock()
        self._lease = timedelta(seconds=lease_seconds)
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
        record = JobRecord(
            id=job_id,
            payload=dict(payload),
            max_attempts=max_attempts,
            backoff_delay=backoff_delay,
            created_at=now,
            run_after=now,
        )
        async with self._lock:
            if job_id in self._jobs:
                raise ValueError(f"job {job_id} already exists")
            self._jobs[job_id] = record
            self._order[job_id] = len(self._order)
        return replace(record)

    async def get(self, job_id: uuid.UUID) -> JobRecord | None:
        record = self._jobs.get(job_id)
        return None if record is None else replace(record)

    async def list_jobs(self, offset: int = 0, limit: int = 20) -> list[JobRecord]:
        ordered = sorted(
            self._jobs.values(),
            key=lambda r: (r.created_at, self._order[r.id]),
            reverse=True,
        )
        offset = max(offset, 0)
        return [replace(r) for r in ordered[offset : offset + limit]]

    async def counts(self) -> dict[str, int]:
        counts = dict.fromkeys(JOB_STATES, 0)
        for record in self._jobs.values():
            counts[record.status] += 1
        return counts

    async def claim(self) -> JobRecord | None:
        async with self._lock:
            now = self._clock()
            runnable = [
                r
                for r in self._jobs.values()
                if (r.status == "queued" and r.run_after <= now)
                or (
                    r.status == "active"
                    and r.processed_at is not None
                    and r.processed_at < now - self._lease
                )
            ]
            if not runnable:
                return None
            record = min(runnable, key=lambda r: (r.run_after, self._order[r.id]))
            if record.status == "queued":
                record.attempts_made += 1
            record.status = "active"
            record.processed_at = now
            return replace(record)

    async def update_progress(self, job_id: uuid.UUID, progress: int) -> None:
        async with self._lock:
            self._require(job_id).progress = progress

    async def complete(self, job_id: uuid.UUID, result: list[str]) -> JobRecord:
        async with self._lock:
            record = self._require(job_id)
            record.status = "completed"
            record.result = list(result)
            record.failure_reason = None
            record.finished_at = self._clock()
            return replace(record)

    async def fail(self, job_id: uuid.UUID, reason: str, *, retry: bool = True) -> JobRecord:
        async with self._lock:
            record = self._require(job_id)
            apply_failure(record, reason, retry=retry, now=self._clock())
            return replace(record)

    def _require(self, job_id: uuid.UUID) -> JobRecord:
        try:
            return self._jobs[job_id]
        except KeyError:
            raise KeyError(f"job {job_id} not found") from None
