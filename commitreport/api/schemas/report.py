"""Commit report request schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from commitreport.core.dates import DateRange
from commitreport.engines.commit_fetcher.models import Repository


class RepositoryIn(BaseModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)


class ReportRequest(BaseModel):
    """Shared body of every report endpoint.

    ``repositories`` omitted (or null) means "use the configured registry";
    an explicit list, even an empty one, replaces it and bypasses the cache.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
                "repositories": [{"name": "api", "url": "https://github.com/acme/api"}],
            }
        }
    )

    start_date: date
    end_date: date
    repositories: list[RepositoryIn] | None = None

    def date_range(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def repository_list(self) -> list[Repository] | None:
        if self.repositories is None:
            return None
        return [Repository(name=r.name.strip(), url=r.url.strip()) for r in self.repositories]
