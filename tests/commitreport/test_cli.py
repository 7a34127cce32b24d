"""Tests for the commitreport CLI (services mocked)."""

from __future__ import annotations

import os
from unittest.mock import AsyncMock, MagicMock, patch

from click.testing import CliRunner
from factories import JANUARY

from commitreport.api import deps
from commitreport.cli import main
from commitreport.services import ValidationError


class TestReportCommand:
    def test_prints_blocks(self):
        with patch(
            "commitreport.cli._run_report", new_callable=AsyncMock, return_value=["one", "two"]
        ) as run:
            result = CliRunner().invoke(main, ["report", "2024-01-01", "2024-01-31"])

        assert result.exit_code == 0, result.output
        assert "one\n\n---\n\ntwo" in result.output
        run.assert_awaited_once_with(JANUARY, "report")

    def test_raw_kind(self):
        with patch(
            "commitreport.cli._run_report", new_callable=AsyncMock, return_value="# Commit Report"
        ) as run:
            result = CliRunner().invoke(
                main, ["report", "2024-01-01", "2024-01-31", "--kind", "raw"]
            )
        assert result.exit_code == 0
        assert "# Commit Report" in result.output
        assert run.await_args.args[1] == "raw"

    def test_bad_date(self):
        result = CliRunner().invoke(main, ["report", "01/01/2024", "2024-01-31"])
        assert result.exit_code == 2
        assert "YYYY-MM-DD" in result.output

    def test_service_error_exit_code(self):
        with patch(
            "commitreport.cli._run_report",
            new_callable=AsyncMock,
            side_effect=ValidationError("start date must not be after end date"),
        ):
            result = CliRunner().invoke(main, ["report", "2024-02-01", "2024-01-01"])
        assert result.exit_code == 1
        assert "start date must not be after end date" in result.output


class TestWorkerCommand:
    def test_refuses_memory_backend(self):
        with patch.dict(os.environ, {"COMMITREPORT_JOB_BACKEND": "memory"}):
            result = CliRunner().invoke(main, ["worker"])
        assert result.exit_code == 1
        assert "COMMITREPORT_JOB_BACKEND=postgres" in result.output


class TestServeCommand:
    def test_runs_uvicorn(self):
        with patch("uvicorn.run", new_callable=MagicMock) as run:
            result = CliRunner().invoke(main, ["serve", "--port", "9000", "--no-worker"])

        assert result.exit_code == 0, result.output
        assert run.call_args.kwargs["port"] == 9000
        assert deps.get_settings().run_worker is False
