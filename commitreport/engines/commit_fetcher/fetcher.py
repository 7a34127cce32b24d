"""Commit fetcher — existence, branches and commit history from the hosting API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar

import httpx
import structlog

from commitreport.core.dates import DateRange, to_github_iso
from commitreport.engines.commit_fetcher.github_client import GitHubClient, RateLimitError
from commitreport.engines.commit_fetcher.models import Branch, Commit, Repository
from commitreport.services import UpstreamError

log = structlog.get_logger("commitreport.engine")

V = TypeVar("V")

COMMITS_PAGE_SIZE = 100
LATEST_COMMITS_DEFAULT = 5

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


# ── memo stores ───────────────────────────────────────────────────────────


class MemoStore(Generic[V]):
    """Process-lifetime key → value store with no eviction.

    Subclass to back the memo with a shared cache; call sites only use
    :meth:`get` and :meth:`set`.
    """

    async def get(self, key: str) -> V | None:
        raise NotImplementedError

    async def set(self, key: str, value: V) -> None:
        raise NotImplementedError


class InMemoryMemoStore(MemoStore[V]):
    def __init__(self) -> None:
        self._data: dict[str, V] = {}

    async def get(self, key: str) -> V | None:
        return self._data.get(key)

    async def set(self, key: str, value: V) -> None:
        self._data[key] = value

    def __len__(self) -> int:
        return len(self._data)


@dataclass
class FetcherMemo:
    """Memo state owned by a single :class:`CommitFetcher` (its only writer)."""

    existence: MemoStore[bool] = field(default_factory=InMemoryMemoStore)
    branches: MemoStore[list[Branch]] = field(default_factory=InMemoryMemoStore)


# ── fetcher ───────────────────────────────────────────────────────────────


def _upstream(exc: Exception, what: str, repo: Repository) -> UpstreamError:
    """Wrap a transport-level exception into :class:`UpstreamError`."""
    status = None
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        detail = f"HTTP {status}"
    else:
        detail = f"{type(exc).__name__}: {exc}"
    return UpstreamError(f"{what} failed for {repo.name}: {detail}", status=status)


class CommitFetcher:
    """Reads repositories, branches and commits through :class:`GitHubClient`.

    Branch and commit traversal is sequential (branch by branch, page by
    page) so log order and accumulated commit order are deterministic.
    """

    def __init__(self, client: GitHubClient, memo: FetcherMemo | None = None) -> None:
        self._client = client
        self._memo = memo or FetcherMemo()

    async def exists(self, repo: Repository) -> bool:
        """True if the repository is visible; a 404 is a memoized ``False``.

        Raises :class:`UpstreamError` for any other failure.
        """
        cached = await self._memo.existence.get(repo.url)
        if cached is not None:
            return cached

        try:
            data = await self._client.get(repo.api_path)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                log.warning("fetcher.repo_not_found", repo=repo.name, url=repo.url)
                await self._memo.existence.set(repo.url, False)
                return False
            log.error("fetcher.exists_failed", repo=repo.name, status=exc.response.status_code)
            raise _upstream(exc, "repository lookup", repo) from exc
        except (httpx.HTTPError, RateLimitError) as exc:
            log.error("fetcher.exists_failed", repo=repo.name, error=str(exc))
            raise _upstream(exc, "repository lookup", repo) from exc

        log.debug("fetcher.repo_found", repo=repo.name, full_name=data.get("full_name"))
        await self._memo.existence.set(repo.url, True)
        return True

    async def has_commits(self, repo: Repository) -> bool:
        """True if at least one commit exists. Errors degrade to ``False``."""
        try:
            data = await self._client.get(f"{repo.api_path}/commits", {"per_page": 1})
        except Exception as exc:
            log.warning("fetcher.has_commits_failed", repo=repo.name, error=str(exc))
            return False
        has_any = isinstance(data, list) and len(data) > 0
        log.debug("fetcher.has_commits", repo=repo.name, has_commits=has_any)
        return has_any

    async def list_branches(self, repo: Repository) -> list[Branch]:
        """All branches of *repo*, memoized for the process lifetime."""
        cached = await self._memo.branches.get(repo.url)
        if cached is not None:
            return cached

        branches: list[Branch] = []
        try:
            async for item in self._client.get_paginated(
                f"{repo.api_path}/branches", max_pages=None
            ):
                branches.append(Branch(name=item["name"]))
        except (httpx.HTTPError, RateLimitError) as exc:
            log.error("fetcher.branches_failed", repo=repo.name, error=str(exc))
            raise _upstream(exc, "branch listing", repo) from exc

        log.debug("fetcher.branches", repo=repo.name, count=len(branches))
        await self._memo.branches.set(repo.url, branches)
        return branches

    async def latest_commits(
        self, repo: Repository, limit: int = LATEST_COMMITS_DEFAULT
    ) -> list[Commit]:
        """Newest *limit* commits across every branch (diagnostic only)."""
        branches = await self.list_branches(repo)
        merged: list[Commit] = []
        for branch in branches:
            try:
                data = await self._client.get(
                    f"{repo.api_path}/commits", {"per_page": limit, "sha": branch.name}
                )
            except (httpx.HTTPError, RateLimitError) as exc:
                log.error(
                    "fetcher.latest_failed", repo=repo.name, branch=branch.name, error=str(exc)
                )
                raise _upstream(exc, "latest commit listing", repo) from exc
            merged.extend(Commit.from_api(item) for item in data)

        merged.sort(key=lambda c: c.author_date or _EPOCH, reverse=True)
        latest = merged[:limit]
        for commit in latest:
            log.debug(
                "fetcher.latest_commit",
                repo=repo.name,
                sha=commit.sha,
                date=commit.author_date.isoformat() if commit.author_date else None,
            )
        return latest

    async def all_commits_in_range(self, repo: Repository, date_range: DateRange) -> list[Commit]:
        """Every commit on every branch within the (day-normalized) range.

        Commits reachable from several branches appear once per branch; no
        deduplication is performed. Any page failure aborts the repository.
        """
        since = to_github_iso(date_range.start_of_day())
        until = to_github_iso(date_range.end_of_day())
        log.debug("fetcher.range", repo=repo.name, since=since, until=until)

        branches = await self.list_branches(repo)
        commits: list[Commit] = []
        for branch in branches:
            params = {
                "per_page": COMMITS_PAGE_SIZE,
                "sha": branch.name,
                "since": since,
                "until": until,
            }
            before = len(commits)
            try:
                async for item in self._client.get_paginated(
                    f"{repo.api_path}/commits", params, max_pages=None
                ):
                    commits.append(Commit.from_api(item))
            except (httpx.HTTPError, RateLimitError) as exc:
                log.error(
                    "fetcher.page_failed", repo=repo.name, branch=branch.name, error=str(exc)
                )
                raise _upstream(exc, "commit listing", repo) from exc
            log.debug(
                "fetcher.branch_commits",
                repo=repo.name,
                branch=branch.name,
                count=len(commits) - before,
            )

        log.info("fetcher.commits_in_range", repo=repo.name, total=len(commits))
        return commits
