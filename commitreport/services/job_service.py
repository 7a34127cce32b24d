"""ReportJobService — submit and inspect asynchronous report jobs."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Sequence
from datetime import date
from typing import Any

import structlog

from commitreport.core.dates import DateRange
from commitreport.dao.base import clamp_page_size
from commitreport.engines.commit_fetcher.models import Repository
from commitreport.queue.base import (
    DEFAULT_BACKOFF_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    JobQueue,
    JobRecord,
)
from commitreport.services import NotFoundError, ValidationError
from commitreport.services.report_service import validate_range

log = structlog.get_logger("commitreport.jobs")


def encode_payload(
    date_range: DateRange, repositories: Sequence[Repository] | None
) -> dict[str, Any]:
    return {
        "start_date": date_range.start.isoformat(),
        "end_date": date_range.end.isoformat(),
        "repositories": (
            None if repositories is None else [repo.to_dict() for repo in repositories]
        ),
    }


def decode_payload(payload: dict[str, Any]) -> tuple[DateRange, list[Repository] | None]:
    """Inverse of :func:`encode_payload`.

    Raises :class:`ValidationError` for a payload that cannot be decoded.
    """
    try:
        date_range = DateRange(
            date.fromisoformat(payload["start_date"]),
            date.fromisoformat(payload["end_date"]),
        )
        raw_repos = payload.get("repositories")
        repositories = (
            None if raw_repos is None else [Repository.from_dict(r) for r in raw_repos]
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"malformed job payload: {exc}") from exc
    return date_range, repositories


class ReportJobService:
    """Submit side of the async pipeline. Holds no state besides the queue."""

    def __init__(self, queue: JobQueue, wake: asyncio.Event | None = None) -> None:
        self._queue = queue
        self._wake = wake

    async def submit(
        self,
        date_range: DateRange,
        repositories: Sequence[Repository] | None = None,
    ) -> uuid.UUID:
        """Enqueue a report job and return its id.

        Raises :class:`ValidationError` for an inverted range; nothing is
        enqueued in that case.
        """
        validate_range(date_range)
        job_id = uuid.uuid4()
        await self._queue.enqueue(
            job_id,
            encode_payload(date_range, repositories),
            max_attempts=DEFAULT_MAX_ATTEMPTS,
            backoff_delay=DEFAULT_BACKOFF_DELAY,
        )
        log.info("jobs.submitted", job_id=str(job_id), range=date_range.cache_fragment())
        if self._wake is not None:
            self._wake.set()
        return job_id

    async def status(self, job_id: uuid.UUID) -> JobRecord:
        """Raises :class:`NotFoundError` if the id is unknown."""
        record = await self._queue.get(job_id)
        if record is None:
            raise NotFoundError("report job not found")
        return record

    async def list(self, page: int = 1, page_size: int = 20) -> dict:
        """Jobs in every state, newest first, with per-state counts."""
        page = max(page, 1)
        page_size = clamp_page_size(page_size)
        items = await self._queue.list_jobs((page - 1) * page_size, page_size)
        counts = await self._queue.counts()
        return {
            "items": items,
            "total": sum(counts.values()),
            "counts": counts,
            "page": page,
            "page_size": page_size,
        }
