"""Pydantic schemas for Reports, Analytics and System Config."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from homelesson.schemas.payroll import PayrollRead
from homelesson.schemas.teacher import TeacherRead


# ── Reports ─────────────────────────────────────────────────────────
class ReportRead(BaseModel):
    id: int
    report_type: str
    description: str | None
    generated_by: int | None
    generated_by_name: str | None = None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ReportAttendanceLine(BaseModel):
    status: str
    notes: str | None
    recorded_at: datetime | None
    day_of_week: int
    time_slot: str | None
    subject_name: str | None


class TeacherReportData(BaseModel):
    teacher: TeacherRead
    week_number: int
    year: int
    attendance: list[ReportAttendanceLine]
    payroll: PayrollRead | dict[str, Any] = Field(default_factory=dict)


class TeacherReportResponse(BaseModel):
    message: str
    report: ReportRead
    data: TeacherReportData


class ReportHistoryPage(BaseModel):
    reports: list[ReportRead]
    total: int


# ── Analytics ──────────────────────────────────────────────────────
class SubjectDistributionItem(BaseModel):
    subject_id: int
    subject_name: str
    total_lessons: int
    teachers_count: int
    teachers: list[str]


class PayrollAnalyticsItem(BaseModel):
    week_number: int
    year: int
    teachers_paid: int
    total_amount: int
    average_payment: float


class PerformanceItem(BaseModel):
    teacher_id: int
    teacher_name: str
    weeks_taught: int
    total_lessons: int
    attended_lessons: int
    attendance_rate: int
    total_earnings: int
    avg_weekly_earnings: float


# ── System Config ──────────────────────────────────────────────────
class ConfigEntryRead(BaseModel):
    config_key: str
    config_value: str
    description: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ConfigEntryUpdate(BaseModel):
    config_value: str = Field(max_length=500)
    description: str | None = Field(default=None, max_length=500)
