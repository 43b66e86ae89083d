"""
Weekly timetable: whole-day replacement and slot statistics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import distinct, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.exceptions import TransactionFailure
from homelesson.db.base import model_to_dict
from homelesson.db.session import atomic
from homelesson.models.attendance import Attendance
from homelesson.models.teacher import Subject, Teacher
from homelesson.models.timetable import TimetableEntry
from homelesson.schemas.timetable import TimetableEntryCreate

logger = logging.getLogger(__name__)


def _joined_select():
    return (
        select(TimetableEntry, Teacher.name, Subject.name)
        .outerjoin(Teacher, TimetableEntry.teacher_id == Teacher.id)
        .outerjoin(Subject, TimetableEntry.subject_id == Subject.id)
    )


def _flatten(rows: Iterable[Any]) -> list[dict[str, Any]]:
    return [
        {**model_to_dict(entry), "teacher_name": teacher_name, "subject_name": subject_name}
        for entry, teacher_name, subject_name in rows
    ]


async def list_day(db: AsyncSession, day: int) -> list[dict[str, Any]]:
    result = await db.execute(
        _joined_select()
        .where(TimetableEntry.day_of_week == day)
        .order_by(TimetableEntry.time_slot, TimetableEntry.id)
    )
    return _flatten(result.all())


async def list_grouped(db: AsyncSession) -> dict[int, list[dict[str, Any]]]:
    """Every slot, grouped by day of week.  Days without slots are omitted."""
    result = await db.execute(
        _joined_select().order_by(
            TimetableEntry.day_of_week, TimetableEntry.time_slot, TimetableEntry.id
        )
    )
    grouped: dict[int, list[dict[str, Any]]] = {}
    for lesson in _flatten(result.all()):
        grouped.setdefault(lesson["day_of_week"], []).append(lesson)
    return grouped


async def _relink_attendance(db: AsyncSession, entries: list[TimetableEntry]) -> int:
    """Point orphaned attendance back at the new entry for the same teacher and slot."""
    relinked = 0
    for entry in entries:
        if entry.is_break or entry.teacher_id is None:
            continue
        result = await db.execute(
            update(Attendance)
            .where(
                Attendance.timetable_id.is_(None),
                Attendance.teacher_id == entry.teacher_id,
                Attendance.day_of_week == entry.day_of_week,
                Attendance.time_slot == entry.time_slot,
            )
            .values(timetable_id=entry.id)
        )
        relinked += result.rowcount or 0
    return relinked


async def replace_days(
    db: AsyncSession,
    entries: list[TimetableEntryCreate],
    days: Iterable[int] = (),
) -> list[TimetableEntry]:
    """Swap out every slot on the affected days for ``entries`` in one transaction.

    Affected days are those named by ``entries`` plus ``days``.  Other days
    are not touched.  Any failure leaves every affected day as it was.
    """
    affected = sorted({e.day_of_week for e in entries} | set(days))
    created = [TimetableEntry(**e.model_dump()) for e in entries]
    try:
        async with atomic(db):
            if affected:
                await db.execute(
                    sa_delete(TimetableEntry).where(TimetableEntry.day_of_week.in_(affected))
                )
            db.add_all(created)
            await db.flush()
            relinked = await _relink_attendance(db, created)
    except SQLAlchemyError as exc:
        raise TransactionFailure(f"Timetable replacement failed for days {affected}") from exc

    logger.info(
        "Timetable replaced for days %s: %d entries, %d attendance rows relinked",
        affected, len(created), relinked,
    )
    return created


async def statistics(db: AsyncSession) -> dict[str, Any]:
    """Counts over lesson slots only; breaks are excluded."""
    lessons = TimetableEntry.is_break.is_(False)
    totals = (
        await db.execute(
            select(
                func.count(TimetableEntry.id),
                func.count(distinct(TimetableEntry.subject_id)),
                func.count(distinct(TimetableEntry.teacher_id)),
            ).where(lessons)
        )
    ).one()
    per_day = await db.execute(
        select(TimetableEntry.day_of_week, func.count(TimetableEntry.id))
        .where(lessons)
        .group_by(TimetableEntry.day_of_week)
        .order_by(TimetableEntry.day_of_week)
    )
    return {
        "total_lessons": totals[0] or 0,
        "unique_subjects": totals[1] or 0,
        "teachers_involved": totals[2] or 0,
        "lessons_per_day": {day: count for day, count in per_day.all()},
    }
