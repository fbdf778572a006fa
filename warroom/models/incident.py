"""Incident model — the record driven through the open/investigating/resolved lifecycle."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

SEVERITIES = ("critical", "high", "medium", "low")
STATUSES = ("open", "investigating", "resolved")
SOURCES = ("monitoring", "user_report", "automated", "external")


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ",".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class Incident(Base):
    __tablename__ = "incidents"
    __table_args__ = (
        CheckConstraint(_in_clause("severity", SEVERITIES), name="ck_incidents_severity"),
        CheckConstraint(_in_clause("status", STATUSES), name="ck_incidents_status"),
        CheckConstraint(_in_clause("source", SOURCES), name="ck_incidents_source"),
        Index("ix_incidents_status_created", "status", "created_at"),
        # ids stay monotonic and are never reused
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open", index=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

