"""Tests for reference-timezone date handling."""

from __future__ import annotations

from datetime import date, datetime, timezone

from commitreport.core.dates import (
    REFERENCE_TZ,
    DateRange,
    end_of_day,
    format_day,
    format_timestamp,
    parse_github_datetime,
    start_of_day,
    to_github_iso,
)


class TestDateRange:
    def test_ordered(self):
        assert DateRange(date(2024, 1, 1), date(2024, 1, 31)).is_ordered
        assert DateRange(date(2024, 1, 1), date(2024, 1, 1)).is_ordered

    def test_inverted(self):
        assert not DateRange(date(2024, 2, 1), date(2024, 1, 31)).is_ordered

    def test_cache_fragment(self):
        assert DateRange(date(2024, 1, 1), date(2024, 1, 31)).cache_fragment() == (
            "2024-01-01:2024-01-31"
        )

    def test_boundaries_use_reference_zone(self):
        rng = DateRange(date(2024, 1, 1), date(2024, 1, 31))
        assert rng.start_of_day().tzinfo is REFERENCE_TZ
        assert rng.start_of_day().hour == 0
        assert rng.end_of_day().hour == 23
        assert rng.end_of_day().minute == 59
        assert rng.end_of_day().second == 59


class TestGithubIso:
    def test_start_of_day_in_utc(self):
        # America/Sao_Paulo is UTC-3 in January 2024
        assert to_github_iso(start_of_day(date(2024, 1, 1))) == "2024-01-01T03:00:00Z"

    def test_end_of_day_rolls_into_next_utc_day(self):
        assert to_github_iso(end_of_day(date(2024, 1, 31))) == "2024-02-01T02:59:59Z"

    def test_already_utc(self):
        value = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        assert to_github_iso(value) == "2024-05-06T07:08:09Z"


class TestParseGithubDatetime:
    def test_z_suffix(self):
        parsed = parse_github_datetime("2024-01-10T12:00:00Z")
        assert parsed == datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    def test_offset(self):
        parsed = parse_github_datetime("2024-01-10T09:00:00-03:00")
        assert parsed == datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    def test_missing_or_garbage(self):
        assert parse_github_datetime(None) is None
        assert parse_github_datetime("") is None
        assert parse_github_datetime("yesterday") is None


class TestFormatting:
    def test_format_day_converts_to_reference_zone(self):
        # 01:30 UTC is still the previous day in Sao Paulo
        assert format_day(datetime(2024, 1, 10, 1, 30, tzinfo=timezone.utc)) == "09/01/2024"

    def test_format_timestamp(self):
        value = datetime(2024, 1, 10, 12, 0, 5, tzinfo=timezone.utc)
        assert format_timestamp(value) == "10/01/2024, 09:00:05"
