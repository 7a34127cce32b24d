"""Commit fetcher engine — GitHub commit history without report concerns."""

from commitreport.engines.commit_fetcher.fetcher import (
    CommitFetcher,
    FetcherMemo,
    InMemoryMemoStore,
    MemoStore,
)
from commitreport.engines.commit_fetcher.github_client import GitHubClient, RateLimitError
from commitreport.engines.commit_fetcher.models import Branch, Commit, Repository

__all__ = [
    "Branch",
    "Commit",
    "CommitFetcher",
    "FetcherMemo",
    "GitHubClient",
    "InMemoryMemoStore",
    "MemoStore",
    "RateLimitError",
    "Repository",
]
