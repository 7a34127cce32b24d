"""Dependency injection — settings, engines, queue and service singletons."""

from __future__ import annotations

import asyncio

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from commitreport.core.config import Settings
from commitreport.core.database import build_engine, build_session_factory, create_schema
from commitreport.dao.report_job_dao import ReportJobDAO
from commitreport.engines.commit_fetcher import CommitFetcher, GitHubClient
from commitreport.engines.summarizer import Summarizer
from commitreport.queue import InMemoryJobQueue, JobQueue, SqlJobQueue
from commitreport.services.job_service import ReportJobService
from commitreport.services.registry import RepositoryRegistry
from commitreport.services.report_cache import MemoryCacheStore, ReportCache
from commitreport.services.report_service import ReportService
from commitreport.worker import ReportJobWorker, WorkerLoop

log = structlog.get_logger("commitreport.api")

# ---------------------------------------------------------------------------
# Singletons (initialised by app lifespan or the worker CLI)
# ---------------------------------------------------------------------------
_settings: Settings | None = None
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_github_client: GitHubClient | None = None
_registry: RepositoryRegistry | None = None
_report_service: ReportService | None = None
_job_queue: JobQueue | None = None
_job_service: ReportJobService | None = None
_worker_wake: asyncio.Event | None = None


def get_settings() -> Settings:
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (for testing and the CLI)."""
    global _settings  # noqa: PLW0603
    _settings = settings


def init_session_factory(database_url: str | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the async engine and session factory. Called once at startup."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = build_engine(database_url or get_settings().database_url)
    _session_factory = build_session_factory(_engine)
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the async engine, closing all pooled connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def init_services(settings: Settings | None = None) -> None:
    """Build every runtime singleton from *settings*.

    With the ``postgres`` job backend this also opens the database engine
    and creates the ``report_jobs`` table when missing.
    """
    global _github_client, _registry, _report_service  # noqa: PLW0603
    global _job_queue, _job_service, _worker_wake  # noqa: PLW0603
    if settings is not None:
        set_settings(settings)
    settings = get_settings()

    _registry = RepositoryRegistry.from_config(
        settings.repositories_json, settings.repository_urls, settings.repository_names
    )
    _github_client = GitHubClient(settings.github_token, base_url=settings.github_api_url)
    _report_service = ReportService(
        _registry,
        CommitFetcher(_github_client),
        Summarizer(settings.llm_model, api_key=settings.llm_api_key),
        ReportCache(MemoryCacheStore(maxsize=settings.cache_maxsize), ttl=settings.cache_ttl),
    )

    if settings.job_backend == "memory":
        _job_queue = InMemoryJobQueue(lease_seconds=settings.job_lease_seconds)
    else:
        factory = init_session_factory(settings.database_url)
        assert _engine is not None
        await create_schema(_engine)
        _job_queue = SqlJobQueue(
            factory, ReportJobDAO(), lease_seconds=settings.job_lease_seconds
        )

    _worker_wake = asyncio.Event()
    _job_service = ReportJobService(_job_queue, wake=_worker_wake)
    log.info(
        "services.ready",
        repositories=len(_registry),
        job_backend=settings.job_backend,
        llm_model=settings.llm_model,
    )


async def close_services() -> None:
    """Release the HTTP client and the database engine."""
    global _github_client  # noqa: PLW0603
    if _github_client is not None:
        await _github_client.close()
        _github_client = None
    await dispose_engine()


def create_worker_loop() -> WorkerLoop:
    """Worker loop over the shared queue, woken by job submissions."""
    settings = get_settings()
    worker = ReportJobWorker(get_job_queue(), get_report_service())
    return WorkerLoop(
        worker,
        get_job_queue(),
        settings.worker_poll_interval,
        trigger=_worker_wake,
    )


# ---------------------------------------------------------------------------
# Getters (for Depends())
# ---------------------------------------------------------------------------


def _require(value, name: str):
    if value is None:
        raise RuntimeError(f"call init_services() before using {name}")
    return value


def get_registry() -> RepositoryRegistry:
    return _require(_registry, "the repository registry")


def get_report_service() -> ReportService:
    return _require(_report_service, "the report service")


def get_job_queue() -> JobQueue:
    return _require(_job_queue, "the job queue")


def get_job_service() -> ReportJobService:
    return _require(_job_service, "the job service")
