"""Tests for ReportJobWorker and WorkerLoop."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from factories import API, JANUARY, WEB, make_commit

from commitreport.queue import InMemoryJobQueue
from commitreport.services import UpstreamError, ValidationError
from commitreport.services.job_service import ReportJobService
from commitreport.services.registry import RepositoryRegistry
from commitreport.services.report_cache import MemoryCacheStore, ReportCache
from commitreport.services.report_service import ReportService
from commitreport.worker import ReportJobWorker, WorkerLoop

IN_RANGE = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def queue(clock) -> InMemoryJobQueue:
    return InMemoryJobQueue(clock=clock)


@pytest.fixture
def report_service() -> AsyncMock:
    svc = AsyncMock(spec=ReportService)
    svc.generate_report.return_value = ["report for api"]
    return svc


@pytest.fixture
def worker(queue, report_service) -> ReportJobWorker:
    return ReportJobWorker(queue, report_service)


class TestProcess:
    async def test_success(self, queue, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY, [API])
        result = await worker.process(await queue.claim())

        assert result == {"success": True, "data": ["report for api"]}
        report_service.generate_report.assert_awaited_once_with(JANUARY, [API])
        record = await queue.get(job_id)
        assert record.status == "completed"
        assert record.progress == 100
        assert record.result == ["report for api"]

    async def test_progress_ten_while_generating(self, queue, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY)
        seen: list[int] = []

        async def generate(date_range, repositories):
            seen.append((await queue.get(job_id)).progress)
            return ["r"]

        report_service.generate_report.side_effect = generate
        await worker.process(await queue.claim())
        assert seen == [10]

    async def test_failure_is_retried(self, queue, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY)
        report_service.generate_report.side_effect = UpstreamError("llm down")

        result = await worker.process(await queue.claim())

        assert result == {"success": False, "error": "llm down", "retrying": True}
        record = await queue.get(job_id)
        assert record.status == "queued"
        assert record.failure_reason == "llm down"

    async def test_validation_error_not_retried(self, queue, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY)
        report_service.generate_report.side_effect = ValidationError("bad range")

        result = await worker.process(await queue.claim())

        assert result["retrying"] is False
        assert (await queue.get(job_id)).status == "failed"

    async def test_malformed_payload_fails_terminally(self, queue, worker, report_service):
        job_id = uuid.uuid4()
        await queue.enqueue(job_id, {"start_date": "nope"})
        result = await worker.process(await queue.claim())

        assert result["success"] is False
        assert (await queue.get(job_id)).status == "failed"
        report_service.generate_report.assert_not_awaited()

    async def test_exhausted_attempts(self, queue, clock, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY)
        report_service.generate_report.side_effect = RuntimeError("boom")

        for _ in range(3):
            await worker.process(await queue.claim())
            clock.advance(60)

        record = await queue.get(job_id)
        assert record.status == "failed"
        assert record.attempts_made == 3
        assert record.failure_reason == "boom"
        assert report_service.generate_report.await_count == 3

    async def test_queue_write_failure_does_not_escape(self, queue, worker, report_service):
        job_id = await ReportJobService(queue).submit(JANUARY)
        report_service.generate_report.side_effect = UpstreamError("llm down")
        with patch.object(queue, "fail", AsyncMock(side_effect=ConnectionError("db gone"))):
            result = await worker.process(await queue.claim())

        assert result == {"success": False, "error": "llm down", "retrying": True}
        assert (await queue.get(job_id)).status == "active"


class TestEndToEnd:
    """Worker over a real ReportService; only GitHub and the LLM are faked."""

    @pytest.fixture
    def service(self, fetcher, summarizer) -> ReportService:
        fetcher.exists.return_value = True
        fetcher.has_commits.return_value = True
        fetcher.latest_commits.return_value = [make_commit("a1", IN_RANGE)]
        fetcher.all_commits_in_range.side_effect = lambda repo, date_range: [
            make_commit(f"{repo.name}-1", IN_RANGE, f"feat: {repo.name} login"),
            make_commit(f"{repo.name}-2", IN_RANGE, "fix: typo"),
        ]
        return ReportService(
            RepositoryRegistry([API]), fetcher, summarizer, ReportCache(MemoryCacheStore())
        )

    async def test_job_result_matches_synchronous_report(self, queue, service, summarizer):
        jobs = ReportJobService(queue)
        job_id = await jobs.submit(JANUARY, [API, WEB])

        before = await jobs.status(job_id)
        assert before.status == "queued"
        assert before.progress < 100

        during: list[tuple[str, int]] = []

        async def complete(prompt: str) -> str:
            record = await queue.get(job_id)
            during.append((record.status, record.progress))
            return f"summary({len(prompt)})"

        summarizer.complete.side_effect = complete
        loop = WorkerLoop(ReportJobWorker(queue, service), queue, interval=60)
        assert await loop.run_once() == 1

        assert during == [("active", 10), ("active", 10)]
        record = await jobs.status(job_id)
        assert record.status == "completed"
        assert record.progress == 100
        assert record.result == await service.generate_report(JANUARY, [API, WEB])
        assert len(record.result) == 2

    async def test_registry_job_matches_synchronous_report(self, queue, service):
        jobs = ReportJobService(queue)
        job_id = await jobs.submit(JANUARY)

        await WorkerLoop(ReportJobWorker(queue, service), queue, interval=60).run_once()

        record = await jobs.status(job_id)
        assert record.status == "completed"
        assert record.result == await service.generate_report(JANUARY)


class TestWorkerLoop:
    async def test_run_once_drains_queue(self, queue, worker):
        svc = ReportJobService(queue)
        await svc.submit(JANUARY)
        await svc.submit(JANUARY)

        loop = WorkerLoop(worker, queue, interval=60)
        assert await loop.run_once() == 2
        assert await loop.run_once() == 0
        assert (await queue.counts())["completed"] == 2

    async def test_trigger_wakes_loop(self, queue, worker):
        wake = asyncio.Event()
        svc = ReportJobService(queue, wake=wake)
        loop = WorkerLoop(worker, queue, interval=60, trigger=wake)
        await loop.start()
        try:
            job_id = await svc.submit(JANUARY)
            for _ in range(100):
                if (await queue.get(job_id)).status == "completed":
                    break
                await asyncio.sleep(0.01)
            assert (await queue.get(job_id)).status == "completed"
        finally:
            await loop.stop()

    async def test_loop_survives_errors(self, queue, worker):
        loop = WorkerLoop(worker, queue, interval=0.01)
        calls: list[int] = []

        async def flaky() -> int:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("db gone")
            return 0

        loop.run_once = flaky  # type: ignore[method-assign]
        await loop.start()
        try:
            for _ in range(100):
                if len(calls) >= 3:
                    break
                await asyncio.sleep(0.01)
        finally:
            await loop.stop()
        assert len(calls) >= 3

    async def test_stop_without_start(self, queue, worker):
        await WorkerLoop(worker, queue, interval=1).stop()
