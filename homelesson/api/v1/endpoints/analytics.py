"""
Analytics endpoints.  All read-only.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import current_iso_week, get_current_active_user, get_db
from homelesson.models.user import User
from homelesson.schemas.attendance import TeacherAttendanceSummary
from homelesson.schemas.report import (PayrollAnalyticsItem, PerformanceItem,
                                       SubjectDistributionItem)
from homelesson.services import attendance, reporting

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/attendance", response_model=list[TeacherAttendanceSummary])
async def attendance_analytics(
    period: Literal["week", "month"] = "week",
    week: Optional[int] = Query(default=None, ge=1, le=53),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    """Active teachers ranked by attendance percentage for a week or calendar month."""
    if period == "month":
        today = date.today()
        rows = await attendance.summarize_active(
            db, month=month or today.month, year=year or today.year
        )
    else:
        default_week, default_year = current_iso_week()
        rows = await attendance.summarize_active(
            db, week=week or default_week, year=year or default_year
        )
    return attendance.sort_by_percentage(rows)


@router.get("/subjects", response_model=list[SubjectDistributionItem])
async def subject_analytics(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await reporting.subject_distribution(db)


@router.get("/payroll", response_model=list[PayrollAnalyticsItem])
async def payroll_analytics(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await reporting.payroll_analytics(db)


@router.get("/performance", response_model=list[PerformanceItem])
async def performance_analytics(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await reporting.performance(db)
