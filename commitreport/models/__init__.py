"""SQLAlchemy ORM models — one file per table."""

from commitreport.models.report_job import ReportJob

__all__ = [
    "ReportJob",
]
