"""
Teacher & Subject persistence.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.exceptions import NotFoundError, ValidationFailed
from homelesson.db.base import model_to_dict
from homelesson.models.payroll import PayrollRecord
from homelesson.models.teacher import Subject, Teacher
from homelesson.schemas.teacher import SubjectCreate, TeacherCreate, TeacherUpdate
from homelesson.services import attendance

logger = logging.getLogger(__name__)

PAYROLL_PREVIEW_PERIODS = 8
ATTENDANCE_PREVIEW_WEEKS = 4


async def get_teacher(db: AsyncSession, teacher_id: int) -> Teacher:
    teacher = await db.get(Teacher, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher not found")
    return teacher


async def list_teachers(db: AsyncSession) -> list[dict[str, Any]]:
    result = await db.execute(select(Teacher).order_by(Teacher.name, Teacher.id))
    teachers = list(result.scalars().all())
    history = await attendance.recent_history(
        db, [t.id for t in teachers], weeks=ATTENDANCE_PREVIEW_WEEKS
    )
    return [
        {**model_to_dict(t), "attendance_history": history.get(t.id, [])}
        for t in teachers
    ]


async def teacher_detail(db: AsyncSession, teacher_id: int) -> dict[str, Any]:
    teacher = await get_teacher(db, teacher_id)
    result = await db.execute(
        select(
            PayrollRecord.week_number,
            PayrollRecord.year,
            PayrollRecord.total_amount,
            PayrollRecord.paid,
        )
        .where(PayrollRecord.teacher_id == teacher_id)
        .order_by(PayrollRecord.year.desc(), PayrollRecord.week_number.desc())
        .limit(PAYROLL_PREVIEW_PERIODS)
    )
    return {
        **model_to_dict(teacher),
        "payroll_history": [dict(r._mapping) for r in result.all()],
    }


async def create_teacher(db: AsyncSession, body: TeacherCreate) -> Teacher:
    teacher = Teacher(**body.model_dump())
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)
    logger.info("Created teacher %d (%s)", teacher.id, teacher.name)
    return teacher


async def update_teacher(db: AsyncSession, teacher_id: int, body: TeacherUpdate) -> Teacher:
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No fields to update")

    teacher = await get_teacher(db, teacher_id)
    for field, value in changes.items():
        setattr(teacher, field, value)

    await db.commit()
    await db.refresh(teacher)
    logger.info("Updated teacher %d: %s", teacher_id, sorted(changes))
    return teacher


async def delete_teacher(db: AsyncSession, teacher_id: int) -> str:
    """Delete the teacher; the database cascades to slots, attendance and payroll."""
    teacher = await get_teacher(db, teacher_id)
    name = teacher.name
    await db.execute(sa_delete(Teacher).where(Teacher.id == teacher_id))
    await db.commit()
    db.expunge_all()
    logger.info("Deleted teacher %d (%s)", teacher_id, name)
    return name


# ── Subjects ────────────────────────────────────────────────────────
async def list_subjects(db: AsyncSession) -> list[Subject]:
    result = await db.execute(select(Subject).order_by(Subject.name))
    return list(result.scalars().all())


async def create_subject(db: AsyncSession, body: SubjectCreate) -> Subject:
    existing = await db.execute(select(Subject).where(Subject.name == body.name))
    if existing.scalar_one_or_none():
        raise ValidationFailed(
            errors=[{"field": "name", "message": f"Subject '{body.name}' already exists"}]
        )
    subject = Subject(name=body.name)
    db.add(subject)
    await db.commit()
    await db.refresh(subject)
    logger.info("Created subject %s", subject.name)
    return subject
