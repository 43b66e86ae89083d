"""
Weekly timetable endpoints.

A day's slots are always replaced as a whole: posting entries for Monday
removes every existing Monday slot first, in the same transaction.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import get_current_active_user, get_db, require_admin
from homelesson.core.exceptions import ValidationFailed
from homelesson.models.timetable import TimetableEntry
from homelesson.models.user import User
from homelesson.schemas.timetable import (TimetableEntryCreate,
                                          TimetableEntryRead,
                                          TimetableStatistics)
from homelesson.services import timetable

router = APIRouter(prefix="/timetable", tags=["timetable"])


@router.get("", response_model=dict[int, list[TimetableEntryRead]])
async def get_timetable(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[int, list[dict[str, Any]]]:
    """The whole week grouped by day of week."""
    return await timetable.list_grouped(db)


@router.get("/statistics", response_model=TimetableStatistics)
async def get_statistics(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    return await timetable.statistics(db)


@router.get("/day/{day}", response_model=list[TimetableEntryRead])
async def get_day(
    day: int = Path(ge=0, le=6),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    return await timetable.list_day(db, day)


@router.post("", response_model=list[TimetableEntryRead])
async def replace_timetable(
    entries: list[TimetableEntryCreate],
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[TimetableEntry]:
    """Replace every day named by the entries and return the stored slots."""
    return await timetable.replace_days(db, entries)


@router.put("/day/{day}", response_model=list[TimetableEntryRead])
async def replace_day(
    entries: list[TimetableEntryCreate],
    day: int = Path(ge=0, le=6),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[TimetableEntry]:
    """Replace one day.  An empty list clears it."""
    mismatched = [i for i, e in enumerate(entries) if e.day_of_week != day]
    if mismatched:
        raise ValidationFailed(
            errors=[
                {"field": f"{i}.day_of_week", "message": f"Entry must be for day {day}"}
                for i in mismatched
            ]
        )
    return await timetable.replace_days(db, entries, days=[day])
