"""Pydantic schemas for Attendance marking and summaries."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

AttendanceStatus = Literal["present", "absent", "late", "partial"]


# ── Marking ─────────────────────────────────────────────────────────
class AttendanceMark(BaseModel):
    week_number: int = Field(ge=1, le=53)
    year: int = Field(ge=2023, le=2100)
    day_of_week: int = Field(ge=0, le=6)
    timetable_id: int
    teacher_id: int
    status: AttendanceStatus
    notes: str | None = Field(default=None, max_length=2000)


class AttendanceRead(BaseModel):
    id: int
    teacher_id: int
    timetable_id: int | None
    time_slot: str
    week_number: int
    year: int
    day_of_week: int
    status: str
    notes: str | None = None
    recorded_by: int | None = None
    recorded_at: datetime | None

    model_config = {"from_attributes": True}


class AttendanceWeekItem(AttendanceRead):
    teacher_name: str
    subject_name: str | None = None


# ── Summaries ───────────────────────────────────────────────────────
class AttendanceSummary(BaseModel):
    total_lessons: int
    present: int
    absent: int
    late: int
    partial: int
    percentage: int


class TeacherAttendanceSummary(AttendanceSummary):
    teacher_id: int
    teacher_name: str


class TrendPoint(BaseModel):
    week_number: int
    year: int
    total_lessons: int
    attended: int
    percentage: int
