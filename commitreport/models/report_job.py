"""report_jobs table."""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Double, Enum, Index, Integer, Text, desc, func, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from commitreport.core.database import Base, TimestampMixin

report_job_status_enum = Enum(
    "queued",
    "active",
    "completed",
    "failed",
    name="report_job_status",
)


class ReportJob(TimestampMixin, Base):
    __tablename__ = "report_jobs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    status: Mapped[str] = mapped_column(
        report_job_status_enum, nullable=False, server_default=text("'queued'")
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    # {"start_date": "...", "end_date": "...", "repositories": [...] | null}
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    result: Mapped[Optional[list[str]]] = mapped_column(JSONB)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text)

    # retry policy
    attempts_made: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("3"))
    backoff_delay: Mapped[float] = mapped_column(
        Double, nullable=False, server_default=text("5.0")
    )
    run_after: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    finished_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_report_jobs_claim", "status", "run_after"),
        Index("idx_report_jobs_created", desc("created_at"), desc("id")),
    )
