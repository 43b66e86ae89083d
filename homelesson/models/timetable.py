"""
Timetable model: one row per lesson (or break) slot in the weekly plan.

Slots are identified by (day_of_week, time_slot); a day is always replaced
as a whole, never merged.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String)

from homelesson.db.base import Base


class TimetableEntry(Base):
    __tablename__ = "timetable"
    __table_args__ = (Index("ix_timetable_day_slot", "day_of_week", "time_slot"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    day_of_week: int = Column(Integer, nullable=False)  # type: ignore[assignment]  # 0..6
    time_slot: str = Column(String(20), nullable=False)  # type: ignore[assignment]  # e.g. 08:00-08:40
    subject_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True
    )
    teacher_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=True, index=True
    )
    is_break: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    break_description: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
