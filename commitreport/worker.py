"""Report job worker — consumes the job queue and runs report generation."""

from __future__ import annotations

import asyncio

import structlog

from commitreport.queue.base import PROGRESS_DONE, PROGRESS_STARTED, JobQueue, JobRecord
from commitreport.services import ValidationError
from commitreport.services.job_service import decode_payload
from commitreport.services.report_service import ReportService

logger = structlog.get_logger(__name__)


class ReportJobWorker:
    """Runs one claimed job to a stored outcome."""

    def __init__(self, queue: JobQueue, report_service: ReportService) -> None:
        self._queue = queue
        self._report_service = report_service

    async def process(self, job: JobRecord) -> dict:
        """Generate the report for *job* and record the outcome on the queue.

        Returns ``{"success": True, "data": [...]}`` or
        ``{"success": False, "error": "...", "retrying": bool}``. Never raises
        for a failure inside report generation.
        """
        log = logger.bind(job_id=str(job.id), attempt=job.attempts_made)
        log.info("worker.job_started")
        try:
            date_range, repositories = decode_payload(job.payload)
            await self._queue.update_progress(job.id, PROGRESS_STARTED)
            reports = await self._report_service.generate_report(date_range, repositories)
            await self._queue.update_progress(job.id, PROGRESS_DONE)
            await self._queue.complete(job.id, reports)
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            try:
                record = await self._queue.fail(
                    job.id, reason, retry=not isinstance(exc, ValidationError)
                )
            except Exception as store_exc:
                # job stays active; another claim picks it up once the lease expires
                log.error("worker.fail_record_failed", reason=reason, error=str(store_exc))
                return {"success": False, "error": reason, "retrying": True}
            retrying = record.status == "queued"
            log.error("worker.job_failed", reason=reason, retrying=retrying)
            return {"success": False, "error": reason, "retrying": retrying}

        log.info("worker.job_completed", blocks=len(reports))
        return {"success": True, "data": reports}


class WorkerLoop:
    """Polling loop with trigger/timeout wake mechanism, one job at a time."""

    def __init__(
        self,
        worker: ReportJobWorker,
        queue: JobQueue,
        interval: float,
        trigger: asyncio.Event | None = None,
    ) -> None:
        self.worker = worker
        self.queue = queue
        self.interval = interval
        self.trigger = trigger or asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    async def run_once(self) -> int:
        """Drain every currently runnable job. Returns how many were processed."""
        processed = 0
        while True:
            job = await self.queue.claim()
            if job is None:
                return processed
            await self.worker.process(job)
            processed += 1

    async def loop(self) -> None:
        """Run forever, waking on trigger or after *interval* seconds."""
        while True:
            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass

            try:
                processed = await self.run_once()
                if processed:
                    logger.info("worker.cycle", processed=processed)
            except Exception:
                logger.exception("worker.error")

    async def start(self) -> None:
        self._task = asyncio.create_task(self.loop(), name="report-worker")
        # pick up anything already queued
        self.trigger.set()
        logger.info("worker.started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("worker.stopped")
