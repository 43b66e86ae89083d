"""
Attendance endpoints: week listing, marking, weekly summary and trends.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import get_current_active_user, get_db
from homelesson.models.attendance import Attendance
from homelesson.models.user import User
from homelesson.schemas.attendance import (AttendanceMark, AttendanceRead,
                                           AttendanceWeekItem,
                                           TeacherAttendanceSummary,
                                           TrendPoint)
from homelesson.services import attendance, teachers

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("/week/{week}/{year}", response_model=list[AttendanceWeekItem])
async def week_attendance(
    week: int = Path(ge=1, le=53),
    year: int = Path(ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await attendance.list_week(db, week, year)


@router.post("", response_model=AttendanceRead)
async def mark_attendance(
    body: AttendanceMark,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Attendance:
    """Record one lesson.  Marking the same slot again updates the record."""
    return await attendance.mark(db, body, current_user.id)


@router.get("/summary/{week}/{year}", response_model=list[TeacherAttendanceSummary])
async def week_summary(
    week: int = Path(ge=1, le=53),
    year: int = Path(ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await attendance.summarize_active(db, week=week, year=year)


@router.get("/trends/{teacher_id}", response_model=list[TrendPoint])
async def attendance_trends(
    teacher_id: int,
    weeks: int = Query(default=4, ge=1, le=52),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    """Recorded weeks for one teacher, oldest first."""
    await teachers.get_teacher(db, teacher_id)
    return await attendance.weekly_trend(db, teacher_id, weeks=weeks)
