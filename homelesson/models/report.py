"""
Report model: a log line saying a report was produced (content is not stored).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from homelesson.db.base import Base


class Report(Base):
    __tablename__ = "reports"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    report_type: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    generated_by: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
