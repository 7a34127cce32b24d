"""Report job queue — narrow contract with in-memory and PostgreSQL backends."""

from commitreport.queue.base import (
    JOB_STATES,
    PROGRESS_DONE,
    PROGRESS_STARTED,
    JobQueue,
    JobRecord,
    backoff_for,
)
from commitreport.queue.memory import InMemoryJobQueue
from commitreport.queue.sql import SqlJobQueue

__all__ = [
    "JOB_STATES",
    "PROGRESS_DONE",
    "PROGRESS_STARTED",
    "InMemoryJobQueue",
    "JobQueue",
    "JobRecord",
    "SqlJobQueue",
    "backoff_for",
]
