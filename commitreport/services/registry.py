"""RepositoryRegistry — the configured default set of repositories."""

from __future__ import annotations

import json
from collections.abc import Sequence

import structlog

from commitreport.engines.commit_fetcher.models import Repository

log = structlog.get_logger("commitreport.registry")


def _split_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class RepositoryRegistry:
    """Holds the repositories analyzed when a request supplies no override.

    Loading never raises: bad configuration leaves an empty registry and a
    warning in the log.
    """

    def __init__(self, repositories: Sequence[Repository] = ()) -> None:
        self._repositories: tuple[Repository, ...] = tuple(repositories)

    @classmethod
    def from_config(
        cls,
        repositories_json: str | None = None,
        repository_urls: str | None = None,
        repository_names: str | None = None,
    ) -> RepositoryRegistry:
        """Parse the JSON list first, then fall back to parallel CSV lists."""
        if repositories_json:
            try:
                items = json.loads(repositories_json)
                if not isinstance(items, list):
                    raise ValueError("expected a JSON list of {name, url} objects")
                repos = [Repository.from_dict(item) for item in items]
            except (ValueError, KeyError, TypeError) as exc:
                log.error("registry.json_invalid", error=str(exc))
            else:
                log.info("registry.loaded", source="json", count=len(repos))
                return cls(repos)

        urls = _split_csv(repository_urls)
        names = _split_csv(repository_names)
        if not urls:
            log.warning(
                "registry.empty",
                hint="set GITHUB_REPOSITORIES or GITHUB_REPOSITORY_URLS + GITHUB_REPOSITORY_NAMES",
            )
            return cls()
        if len(urls) != len(names):
            log.warning("registry.length_mismatch", urls=len(urls), names=len(names))
            return cls()

        repos = [Repository(name=name, url=url) for name, url in zip(names, urls, strict=True)]
        log.info("registry.loaded", source="csv", count=len(repos))
        return cls(repos)

    def list_configured(self) -> list[Repository]:
        return list(self._repositories)

    def resolve(self, override: Sequence[Repository] | None = None) -> list[Repository]:
        """Return *override* when given (even if empty), else the configured list."""
        if override is not None:
            return list(override)
        return self.list_configured()

    def __len__(self) -> int:
        return len(self._repositories)
