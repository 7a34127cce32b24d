"""ReportService — builds commit reports from fetched history."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from commitreport.core.dates import DateRange, format_day, format_timestamp
from commitreport.engines.commit_fetcher.fetcher import CommitFetcher
from commitreport.engines.commit_fetcher.models import Commit, Repository
from commitreport.engines.summarizer import (
    Summarizer,
    build_executive_prompt,
    build_repository_prompt,
)
from commitreport.services import ValidationError
from commitreport.services.registry import RepositoryRegistry
from commitreport.services.report_cache import ReportCache

log = structlog.get_logger("commitreport.report")

NO_REPOSITORIES = "No repositories configured for analysis."


def validate_range(date_range: DateRange) -> None:
    """Raise :class:`ValidationError` when ``start > end``."""
    if not date_range.is_ordered:
        raise ValidationError("start date must not be after end date")


def _commit_block(commit: Commit) -> str:
    when = format_timestamp(commit.author_date) if commit.author_date else "unknown date"
    return (
        f"#### {when}\n\n"
        f"**Author:** {commit.author_name}\n\n"
        f"**Message:**\n{commit.message}\n\n"
        f"**Hash:** `{commit.sha}`\n\n"
        "---\n\n"
    )


class ReportService:
    """Turns fetched commits into report text.

    Repositories are processed sequentially in input order. A failure in one
    repository becomes an inline message for that repository and never aborts
    the batch.
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        fetcher: CommitFetcher,
        summarizer: Summarizer,
        cache: ReportCache,
    ) -> None:
        self._registry = registry
        self._fetcher = fetcher
        self._summarizer = summarizer
        self._cache = cache

    # ── per-repository narrative report ───────────────────────────────────

    async def generate_report(
        self,
        date_range: DateRange,
        repositories: Sequence[Repository] | None = None,
    ) -> list[str]:
        """One summary block per repository, in input order.

        Registry-backed results are served from and written to the cache;
        a caller-supplied *repositories* list bypasses it entirely.
        """
        validate_range(date_range)
        repos = self._registry.resolve(repositories)
        if not repos:
            return [NO_REPOSITORIES]

        cached = await self._cache.get(ReportCache.REPORT, date_range, repositories)
        if cached is not None:
            log.debug(
                "report.cache_hit", kind=ReportCache.REPORT, range=date_range.cache_fragment()
            )
            return list(cached)

        reports: list[str] = []
        for repo in repos:
            log.info("report.repository", repo=repo.name)
            try:
                reports.append(await self._repository_report(repo, date_range))
            except Exception as exc:
                log.error("report.repository_failed", repo=repo.name, error=str(exc))
                reports.append(f"Error processing repository {repo.name}: {exc}")

        await self._cache.set(ReportCache.REPORT, date_range, reports, repositories)
        return reports

    async def _repository_report(self, repo: Repository, date_range: DateRange) -> str:
        if not await self._fetcher.exists(repo):
            return f"Repository {repo.name} not found or inaccessible"
        if not await self._fetcher.has_commits(repo):
            return f"Repository {repo.name} has no commits"

        await self._fetcher.latest_commits(repo)
        commits = await self._fetcher.all_commits_in_range(repo, date_range)
        return await self._summarizer.complete(build_repository_prompt(repo, commits))

    # ── raw markdown transcript ───────────────────────────────────────────

    async def raw_commits(
        self,
        date_range: DateRange,
        repositories: Sequence[Repository] | None = None,
    ) -> str:
        """Markdown transcript of every commit in range, without the LLM."""
        validate_range(date_range)
        repos = self._registry.resolve(repositories)
        if not repos:
            return f"# Error\n\n{NO_REPOSITORIES}"

        cached = await self._cache.get(ReportCache.RAW_COMMITS, date_range, repositories)
        if cached is not None:
            log.debug(
                "report.cache_hit", kind=ReportCache.RAW_COMMITS, range=date_range.cache_fragment()
            )
            return cached

        parts = ["# Commit Report\n\n"]
        for repo in repos:
            log.info("report.raw_repository", repo=repo.name)
            try:
                parts.append(await self._repository_markdown(repo, date_range))
            except Exception as exc:
                log.error("report.raw_repository_failed", repo=repo.name, error=str(exc))
                parts.append(f"## {repo.name}\n\nError fetching commits: {exc}\n\n")

        markdown = "".join(parts)
        await self._cache.set(ReportCache.RAW_COMMITS, date_range, markdown, repositories)
        return markdown

    async def _repository_markdown(self, repo: Repository, date_range: DateRange) -> str:
        header = f"## {repo.name}\n\n"
        if not await self._fetcher.exists(repo):
            return header + "Repository not found or inaccessible\n\n"
        if not await self._fetcher.has_commits(repo):
            return header + "Repository has no commits\n\n"

        period_start = date_range.start_of_day()
        period_end = date_range.end_of_day()
        period = f"{format_day(period_start)} to {format_day(period_end)}"

        latest = await self._fetcher.latest_commits(repo)
        if latest and latest[0].author_date and latest[0].author_date < period_start:
            last_day = format_day(latest[0].author_date)
            return (
                header
                + f"Requested period: {period}\n\n"
                + f"Last commit: {last_day}\n\n"
                + f"There are no commits in the requested period. "
                f"The last commit was made on {last_day}.\n\n"
            )

        commits = await self._fetcher.all_commits_in_range(repo, date_range)
        body = header + f"Period: {period}\n\nTotal commits: {len(commits)}\n\n"
        if not commits:
            return body + "No commits found in this period.\n\n"

        return body + "### Commits\n\n" + "".join(_commit_block(c) for c in commits) + "\n"

    # ── executive summary ─────────────────────────────────────────────────

    async def summary(
        self,
        date_range: DateRange,
        repositories: Sequence[Repository] | None = None,
    ) -> str:
        """Single executive synthesis over :meth:`generate_report` output.

        Not cached at this layer; only the underlying report is.
        """
        validate_range(date_range)
        reports = await self.generate_report(date_range, repositories)
        return await self._summarizer.complete(build_executive_prompt(reports))
