"""Report cache — memoizes report outputs keyed by (repositories, date range)."""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence
from typing import Any

from cachetools import TLRUCache

from commitreport.core.dates import DateRange
from commitreport.engines.commit_fetcher.models import Repository

DEFAULT_TTL = 3600.0
DEFAULT_MAXSIZE = 100

DEFAULT_REPO_KEY = "default"


class CacheStore:
    """Narrow get / set-with-ttl contract for the backing store."""

    async def get(self, key: str) -> Any | None:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl: float) -> None:
        raise NotImplementedError


def _entry_expiry(_key: str, entry: tuple[Any, float], now: float) -> float:
    return now + entry[1]


class MemoryCacheStore(CacheStore):
    """In-process store on :class:`cachetools.TLRUCache` with per-entry TTL."""

    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=timer)

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        return None if entry is None else entry[0]

    async def set(self, key: str, value: Any, ttl: float) -> None:
        self._cache[key] = (value, ttl)

    def __len__(self) -> int:
        return len(self._cache)


def repo_key(repositories: Sequence[Repository] | None) -> str:
    """``default`` for the registry, else the JSON list of sorted URLs."""
    if repositories is None:
        return DEFAULT_REPO_KEY
    return json.dumps(sorted(repo.url for repo in repositories))


def cache_key(kind: str, repositories: Sequence[Repository] | None, date_range: DateRange) -> str:
    return f"{kind}:{repo_key(repositories)}:{date_range.cache_fragment()}"


class ReportCache:
    """Report-level cache. Only registry-backed requests use it.

    Requests carrying a caller-supplied repository list always miss and are
    never stored, so ad-hoc queries are computed fresh.
    """

    REPORT = "report"
    RAW_COMMITS = "raw-commits"

    def __init__(self, store: CacheStore, ttl: float = DEFAULT_TTL) -> None:
        self._store = store
        self._ttl = ttl

    async def get(
        self,
        kind: str,
        date_range: DateRange,
        repositories: Sequence[Repository] | None = None,
    ) -> Any | None:
        if repositories is not None:
            return None
        return await self._store.get(cache_key(kind, None, date_range))

    async def set(
        self,
        kind: str,
        date_range: DateRange,
        value: Any,
        repositories: Sequence[Repository] | None = None,
    ) -> None:
        if repositories is not None:
            return
        await self._store.set(cache_key(kind, None, date_range), value, self._ttl)
