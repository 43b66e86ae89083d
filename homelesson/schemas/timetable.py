"""Pydantic schemas for the weekly timetable."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class TimetableEntryCreate(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    time_slot: str
    subject_id: int | None = None
    teacher_id: int | None = None
    is_break: bool = False
    break_description: str | None = Field(default=None, max_length=200)

    @field_validator("time_slot")
    @classmethod
    def _slot(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("time_slot must not be empty")
        if len(v) > 20:
            raise ValueError("time_slot must not exceed 20 characters")
        return v


class TimetableEntryRead(BaseModel):
    id: int
    day_of_week: int
    time_slot: str
    subject_id: int | None
    teacher_id: int | None
    is_break: bool
    break_description: str | None = None
    created_at: datetime | None = None
    teacher_name: str | None = None
    subject_name: str | None = None

    model_config = {"from_attributes": True}


class TimetableStatistics(BaseModel):
    total_lessons: int
    unique_subjects: int
    teachers_involved: int
    lessons_per_day: dict[int, int]
