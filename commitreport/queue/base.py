"""Job queue contract shared by every backend."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Literal

JobStatus = Literal["queued", "active", "completed", "failed"]
JOB_STATES: tuple[JobStatus, ...] = ("queued", "active", "completed", "failed")
TERMINAL_STATES: frozenset[str] = frozenset({"completed", "failed"})

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_DELAY = 5.0  # seconds, doubled per attempt
DEFAULT_LEASE_SECONDS = 600.0

PROGRESS_STARTED = 10
PROGRESS_DONE = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def backoff_for(attempts_made: int, backoff_delay: float) -> timedelta:
    """Exponential backoff: ``delay * 2 ** (attempts_made - 1)``."""
    return timedelta(seconds=backoff_delay * (2 ** max(attempts_made - 1, 0)))


@dataclass
class JobRecord:
    """Backend-neutral snapshot of one report job."""

    id: uuid.UUID
    payload: dict[str, Any]
    status: JobStatus = "queued"
    progress: int = 0
    result: list[str] | None = None
    failure_reason: str | None = None
    attempts_made: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_delay: float = DEFAULT_BACKOFF_DELAY
    created_at: datetime = field(default_factory=utcnow)
    run_after: datetime = field(default_factory=utcnow)
    processed_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def attempts_left(self) -> int:
        return max(self.max_attempts - self.attempts_made, 0)


class JobQueue:
    """Durable job queue: submit side (enqueue/get/list) and worker side.

    Records are never evicted after completion or failure so status can be
    polled afterwards. Delivery is at-least-once: an ``active`` job whose
    lease expired is handed out again by :meth:`claim`.
    """

    async def enqueue(
        self,
        job_id: uuid.UUID,
        payload: dict[str, Any],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_delay: float = DEFAULT_BACKOFF_DELAY,
    ) -> JobRecord:
        raise NotImplementedError

    async def get(self, job_id: uuid.UUID) -> JobRecord | None:
        raise NotImplementedError

    async def list_jobs(self, offset: int = 0, limit: int = 20) -> list[JobRecord]:
        """Jobs in every state, newest ``created_at`` first."""
        raise NotImplementedError

    async def counts(self) -> dict[str, int]:
        """``{state: count}`` for every state in :data:`JOB_STATES`."""
        raise NotImplementedError

    async def claim(self) -> JobRecord | None:
        """Activate and return the next runnable job, or None."""
        raise NotImplementedError

    async def update_progress(self, job_id: uuid.UUID, progress: int) -> None:
        raise NotImplementedError

    async def complete(self, job_id: uuid.UUID, result: list[str]) -> JobRecord:
        raise NotImplementedError

    async def fail(self, job_id: uuid.UUID, reason: str, *, retry: bool = True) -> JobRecord:
        """Record a failed attempt.

        With attempts left and *retry* set, the job goes back to ``queued``
        with ``run_after`` pushed out by :func:`backoff_for`; otherwise it
        becomes terminally ``failed``.
        """
        raise NotImplementedError


def apply_failure(
    record: JobRecord, reason: str, *, retry: bool, now: datetime
) -> JobRecord:
    """Mutate *record* per the retry policy. Shared by the backends."""
    record.failure_reason = reason
    if retry and record.attempts_made < record.max_attempts:
        record.status = "queued"
        record.run_after = now + backoff_for(record.attempts_made, record.backoff_delay)
    else:
        record.status = "failed"
        record.finished_at = now
    return record
