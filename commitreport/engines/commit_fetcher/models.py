"""Data models for the commit fetcher engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from commitreport.core.dates import parse_github_datetime
from commitreport.core.github import repo_api_path


@dataclass(frozen=True)
class Repository:
    """A repository to analyze. ``url`` must end in ``owner/name``."""

    name: str
    url: str

    @property
    def api_path(self) -> str:
        return repo_api_path(self.url)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Repository:
        return cls(name=str(data["name"]).strip(), url=str(data["url"]).strip())


@dataclass(frozen=True)
class Branch:
    name: str


@dataclass(frozen=True)
class Commit:
    """A single commit as reported by the hosting API.

    This is a pure data structure; no transport dependencies.
    """

    sha: str
    message: str
    author_name: str
    author_date: datetime | None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Commit:
        commit = item.get("commit") or {}
        author = commit.get("author") or {}
        return cls(
            sha=item["sha"],
            message=commit.get("message", ""),
            author_name=author.get("name", ""),
            author_date=parse_github_datetime(author.get("date")),
        )
