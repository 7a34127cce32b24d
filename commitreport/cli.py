"""CLI entry point: commitreport.

Subcommands:
    commitreport serve --port 8000              # API + in-process worker
    commitreport worker                         # standalone queue worker
    commitreport report 2024-01-01 2024-01-31   # one-off report to stdout
"""

from __future__ import annotations

import asyncio
import dataclasses
import os
import sys
from datetime import date

import click
import structlog
from dotenv import load_dotenv

from commitreport.core.config import Settings
from commitreport.core.dates import DateRange
from commitreport.core.logging import setup_logging

log = structlog.get_logger("commitreport.cli")


def _parse_day(_ctx: click.Context, _param: click.Parameter, value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from None


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool) -> None:
    """Commit report service: GitHub history summarized by an LLM."""
    load_dotenv()
    if verbose:
        os.environ["COMMITREPORT_LOG_LEVEL"] = "DEBUG"
    setup_logging()


@main.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--no-worker", is_flag=True, help="Do not run the queue worker in-process")
def serve(host: str, port: int, no_worker: bool) -> None:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    from commitreport.api import create_app

    settings = Settings.from_env()
    if no_worker:
        settings = dataclasses.replace(settings, run_worker=False)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


async def _run_worker(settings: Settings) -> None:
    from commitreport.api import deps

    await deps.init_services(settings)
    loop = deps.create_worker_loop()
    log.info("worker.standalone", backend=settings.job_backend)
    try:
        await loop.start()
        await asyncio.Event().wait()
    finally:
        await loop.stop()
        await deps.close_services()


@main.command("worker")
def worker() -> None:
    """Consume the shared job queue until interrupted."""
    settings = Settings.from_env()
    if settings.job_backend == "memory":
        click.echo("Error: a standalone worker needs COMMITREPORT_JOB_BACKEND=postgres", err=True)
        sys.exit(1)
    try:
        asyncio.run(_run_worker(settings))
    except KeyboardInterrupt:
        pass


async def _run_report(date_range: DateRange, kind: str) -> str | list[str]:
    from commitreport.api import deps

    settings = dataclasses.replace(Settings.from_env(), job_backend="memory")
    await deps.init_services(settings)
    svc = deps.get_report_service()
    try:
        if kind == "raw":
            return await svc.raw_commits(date_range)
        if kind == "summary":
            return await svc.summary(date_range)
        return await svc.generate_report(date_range)
    finally:
        await deps.close_services()


@main.command("report")
@click.argument("start", callback=_parse_day)
@click.argument("end", callback=_parse_day)
@click.option(
    "--kind",
    type=click.Choice(["report", "raw", "summary"]),
    default="report",
    show_default=True,
)
def report(start: date, end: date, kind: str) -> None:
    """Print a report for the configured repositories."""
    from commitreport.services import ServiceError

    try:
        result = asyncio.run(_run_report(DateRange(start, end), kind))
    except ServiceError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if isinstance(result, list):
        click.echo("\n\n---\n\n".join(result))
    else:
        click.echo(result)
