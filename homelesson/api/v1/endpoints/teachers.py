"""
Teacher CRUD endpoints and the per-teacher weekly attendance summary.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import (current_iso_week, get_current_active_user,
                                    get_db, require_admin)
from homelesson.models.teacher import Teacher
from homelesson.models.user import User
from homelesson.schemas.attendance import TeacherAttendanceSummary
from homelesson.schemas.common import DeleteResponse
from homelesson.schemas.teacher import (TeacherCreate, TeacherDetail,
                                        TeacherListItem, TeacherRead,
                                        TeacherUpdate)
from homelesson.services import attendance, teachers

router = APIRouter(prefix="/teachers", tags=["teachers"])


@router.get("", response_model=list[TeacherListItem])
async def list_teachers(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[dict[str, Any]]:
    """All teachers by name, each with its last four weeks of attendance."""
    return await teachers.list_teachers(db)


@router.get("/{teacher_id}", response_model=TeacherDetail)
async def get_teacher(
    teacher_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    return await teachers.teacher_detail(db, teacher_id)


@router.post("", response_model=TeacherRead, status_code=201)
async def create_teacher(
    body: TeacherCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Teacher:
    return await teachers.create_teacher(db, body)


@router.put("/{teacher_id}", response_model=TeacherRead)
async def update_teacher(
    teacher_id: int,
    body: TeacherUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Teacher:
    """Apply only the fields present in the body."""
    return await teachers.update_teacher(db, teacher_id, body)


@router.delete("/{teacher_id}", response_model=DeleteResponse)
async def delete_teacher(
    teacher_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> DeleteResponse:
    name = await teachers.delete_teacher(db, teacher_id)
    return DeleteResponse(success=True, message=f"Teacher '{name}' deleted")


@router.get("/{teacher_id}/attendance", response_model=TeacherAttendanceSummary)
async def teacher_attendance(
    teacher_id: int,
    week: Optional[int] = Query(default=None, ge=1, le=53),
    year: Optional[int] = Query(default=None, ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    """Counts for one week; defaults to the current ISO week."""
    teacher = await teachers.get_teacher(db, teacher_id)
    default_week, default_year = current_iso_week()
    tally = await attendance.teacher_week_tally(
        db, teacher_id, week or default_week, year or default_year
    )
    return {"teacher_id": teacher.id, "teacher_name": teacher.name, **tally.as_dict()}
