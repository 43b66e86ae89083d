"""
Attendance model: one row per teacher per lesson slot per week.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Column, DateTime, ForeignKey, Index, Integer, String,
                        Text, UniqueConstraint)

from homelesson.db.base import Base

ATTENDANCE_STATUSES = ("present", "absent", "late", "partial")
# Statuses that count towards the attendance percentage
ATTENDED_STATUSES = ("present", "late")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint(
            "teacher_id",
            "day_of_week",
            "time_slot",
            "week_number",
            "year",
            name="uq_attendance_slot_week",
        ),
        Index("ix_attendance_teacher_week", "teacher_id", "year", "week_number"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    teacher_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False
    )
    # A lesson is identified by its slot (day_of_week, time_slot); the row link
    # is cleared when the day is replaced and restored if the slot comes back
    timetable_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("timetable.id", ondelete="SET NULL"), nullable=True
    )
    time_slot: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    week_number: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    day_of_week: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # present | absent | late | partial
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    recorded_by: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    recorded_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
