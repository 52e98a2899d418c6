"""SQLAlchemy ORM models for PostgreSQL persistence."""

from __future__ import annotations
from datetime import datetime
from typing import Any
from sqlalchemy import DateTime, Index, Integer, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass

class ProcessLog(Base):
    """One accepted ``POST /process`` payload, stored opaquely.

    Rows are append-only: nothing in the service updates or deletes them.
    """

    __tablename__ = "process_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    data: Mapped[Any] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


# Recency lookups and JSONB containment queries
Index("idx_process_logs_created_at", ProcessLog.created_at.desc())
Index("idx_process_logs_data", ProcessLog.data, postgresql_using="gin")
