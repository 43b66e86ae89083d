"""
Subject catalogue endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import get_current_active_user, get_db, require_admin
from homelesson.models.teacher import Subject
from homelesson.models.user import User
from homelesson.schemas.teacher import SubjectCreate, SubjectRead
from homelesson.services import teachers

router = APIRouter(prefix="/subjects", tags=["subjects"])


@router.get("", response_model=list[SubjectRead])
async def list_subjects(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[Subject]:
    return await teachers.list_subjects(db)


@router.post("", response_model=SubjectRead, status_code=201)
async def create_subject(
    body: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> Subject:
    return await teachers.create_subject(db, body)
