"""Date range handling pinned to the reference timezone (America/Sao_Paulo).

Every range boundary is resolved to a wall-clock day in the reference zone
before it reaches the hosting API, so "today" means the same day for every
caller regardless of the server's local timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

REFERENCE_TZ = ZoneInfo("America/Sao_Paulo")


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` day range. Ordering is checked by callers."""

    start: date
    end: date

    @property
    def is_ordered(self) -> bool:
        return self.start <= self.end

    def start_of_day(self) -> datetime:
        return start_of_day(self.start)

    def end_of_day(self) -> datetime:
        return end_of_day(self.end)

    def cache_fragment(self) -> str:
        return f"{self.start.isoformat()}:{self.end.isoformat()}"


def start_of_day(day: date) -> datetime:
    """Return 00:00:00 of *day* in the reference timezone (aware)."""
    return datetime.combine(day, time.min, tzinfo=REFERENCE_TZ)


def end_of_day(day: date) -> datetime:
    """Return 23:59:59.999999 of *day* in the reference timezone (aware)."""
    return datetime.combine(day, time.max, tzinfo=REFERENCE_TZ)


def to_github_iso(value: datetime) -> str:
    """Render an aware datetime as the UTC ISO-8601 form GitHub expects."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_github_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 datetime string, returning None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


def format_day(value: datetime) -> str:
    """``dd/mm/yyyy`` in the reference timezone."""
    return value.astimezone(REFERENCE_TZ).strftime("%d/%m/%Y")


def format_timestamp(value: datetime) -> str:
    """``dd/mm/yyyy, HH:MM:SS`` in the reference timezone."""
    return value.astimezone(REFERENCE_TZ).strftime("%d/%m/%Y, %H:%M:%S")
