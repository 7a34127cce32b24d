"""Commit report REST API — FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commitreport.api.deps import (
    close_services,
    create_worker_loop,
    get_registry,
    get_settings,
    init_services,
    set_settings,
)
from commitreport.api.errors import register_error_handlers
from commitreport.api.middleware.request_id import RequestIDMiddleware
from commitreport.api.routers import jobs, reports
from commitreport.api.schemas.common import HealthResponse
from commitreport.core.config import Settings
from commitreport.core.logging import setup_logging
from commitreport.services.registry import RepositoryRegistry


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build services, start the in-process worker. Shutdown: reverse."""
    await init_services()
    worker_loop = None
    if get_settings().run_worker:
        worker_loop = create_worker_loop()
        await worker_loop.start()
    yield
    if worker_loop is not None:
        await worker_loop.stop()
    await close_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    setup_logging()
    if settings is not None:
        set_settings(settings)
    settings = get_settings()

    app = FastAPI(
        title="Commit Report",
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=_lifespan,
    )

    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health", response_model=HealthResponse, tags=["ops"])
    @app.get("/api/v1/health", response_model=HealthResponse, tags=["ops"])
    async def health(registry: RepositoryRegistry = Depends(get_registry)) -> HealthResponse:
        return HealthResponse(
            status="ok",
            repositories=len(registry),
            job_backend=get_settings().job_backend,
        )

    app.include_router(reports.router, prefix="/api/v1/commit-report", tags=["reports"])
    app.include_router(jobs.router, prefix="/api/v1/async-reports", tags=["async-reports"])

    return app
