"""Tests for ReportJobDAO and SqlJobQueue (requires PostgreSQL, see conftest)."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from commitreport.dao.report_job_dao import ReportJobDAO
from commitreport.queue import SqlJobQueue
from commitreport.queue.base import utcnow

PAYLOAD = {"start_date": "2024-01-01", "end_date": "2024-01-31", "repositories": None}


class _Clock:
    def __init__(self) -> None:
        self.offset = timedelta()

    def __call__(self):
        return utcnow() + self.offset


@pytest.fixture
def sql_clock() -> _Clock:
    return _Clock()


@pytest.fixture
def sql_queue(pg_session_factory, sql_clock) -> SqlJobQueue:
    return SqlJobQueue(pg_session_factory, ReportJobDAO(), lease_seconds=600, clock=sql_clock)


class TestReportJobDAO:
    async def test_count_by_status_zero_filled(self, pg_session_factory):
        async with pg_session_factory() as session:
            counts = await ReportJobDAO().count_by_status(session)
        assert counts == {"queued": 0, "active": 0, "completed": 0, "failed": 0}

    async def test_create_and_list_recent(self, pg_session_factory):
        dao = ReportJobDAO()
        async with pg_session_factory() as session:
            async with session.begin():
                for _ in range(3):
                    await dao.create(session, id=uuid.uuid4(), payload=PAYLOAD)
            rows = await dao.list_recent(session, 0, 2)
            assert len(rows) == 2
            assert rows[0].status == "queued"
            assert await dao.count(session) == 3

    async def test_immutable_columns(self, pg_session_factory):
        dao = ReportJobDAO()
        async with pg_session_factory() as session:
            async with session.begin():
                job = await dao.create(session, id=uuid.uuid4(), payload=PAYLOAD)
                with pytest.raises(AttributeError):
                    await dao.update(session, job.id, created_at=utcnow())


class TestSqlJobQueue:
    async def test_enqueue_get(self, sql_queue):
        job_id = uuid.uuid4()
        record = await sql_queue.enqueue(job_id, PAYLOAD)
        assert record.status == "queued"
        assert record.max_attempts == 3

        fetched = await sql_queue.get(job_id)
        assert fetched.payload == PAYLOAD
        assert await sql_queue.get(uuid.uuid4()) is None

    async def test_claim_progress_complete(self, sql_queue):
        job_id = uuid.uuid4()
        await sql_queue.enqueue(job_id, PAYLOAD)

        claimed = await sql_queue.claim()
        assert claimed.id == job_id
        assert claimed.status == "active"
        assert claimed.attempts_made == 1
        assert await sql_queue.claim() is None

        await sql_queue.update_progress(job_id, 10)
        assert (await sql_queue.get(job_id)).progress == 10

        done = await sql_queue.complete(job_id, ["report"])
        assert done.status == "completed"
        assert done.result == ["report"]
        assert done.finished_at is not None

    async def test_fail_requeues_with_backoff(self, sql_queue, sql_clock):
        job_id = uuid.uuid4()
        await sql_queue.enqueue(job_id, PAYLOAD)
        await sql_queue.claim()

        record = await sql_queue.fail(job_id, "llm down")
        assert record.status == "queued"
        assert await sql_queue.claim() is None

        sql_clock.offset = timedelta(seconds=6)
        again = await sql_queue.claim()
        assert again.attempts_made == 2

    async def test_fail_without_retry(self, sql_queue):
        job_id = uuid.uuid4()
        await sql_queue.enqueue(job_id, PAYLOAD)
        await sql_queue.claim()
        record = await sql_queue.fail(job_id, "bad", retry=False)
        assert record.status == "failed"
        stored = await sql_queue.get(job_id)
        assert stored.status == "failed"
        assert stored.failure_reason == "bad"

    async def test_stale_lease_reclaimed(self, sql_queue, sql_clock):
        job_id = uuid.uuid4()
        await sql_queue.enqueue(job_id, PAYLOAD)
        await sql_queue.claim()

        sql_clock.offset = timedelta(seconds=601)
        reclaimed = await sql_queue.claim()
        assert reclaimed.id == job_id
        assert reclaimed.attempts_made == 1

    async def test_list_and_counts(self, sql_queue):
        ids = [uuid.uuid4() for _ in range(3)]
        for job_id in ids:
            await sql_queue.enqueue(job_id, PAYLOAD)
        await sql_queue.claim()

        listed = await sql_queue.list_jobs(0, 10)
        assert [r.id for r in listed] == list(reversed(ids))
        counts = await sql_queue.counts()
        assert counts["queued"] == 2
        assert counts["active"] == 1
