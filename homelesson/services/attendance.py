"""
Attendance marking and aggregation.

Counts are fetched grouped by (teacher, status) in one query and folded
into ``AttendanceTally`` objects in Python.  A lesson counts as attended
when its status is ``present`` or ``late``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.exceptions import NotFoundError
from homelesson.models.attendance import ATTENDED_STATUSES, Attendance
from homelesson.models.teacher import Subject, Teacher
from homelesson.models.timetable import TimetableEntry
from homelesson.schemas.attendance import AttendanceMark

logger = logging.getLogger(__name__)


def attendance_percentage(attended: int, total: int) -> int:
    """``round(100 * attended / total)`` with halves rounded up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * attended + total) // (2 * total)


@dataclass
class AttendanceTally:
    total_lessons: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    partial: int = 0

    def add(self, status: str, count: int) -> None:
        self.total_lessons += count
        if status in ("present", "absent", "late", "partial"):
            setattr(self, status, getattr(self, status) + count)

    @property
    def attended(self) -> int:
        return self.present + self.late

    @property
    def percentage(self) -> int:
        return attendance_percentage(self.attended, self.total_lessons)

    def as_dict(self) -> dict[str, int]:
        return {**asdict(self), "percentage": self.percentage}


def _period_filters(
    *, week: int | None = None, year: int, month: int | None = None
) -> list[Any]:
    if month is not None:
        return [
            extract("month", Attendance.recorded_at) == month,
            extract("year", Attendance.recorded_at) == year,
        ]
    return [Attendance.week_number == week, Attendance.year == year]


# ── Aggregation ─────────────────────────────────────────────────────
async def tally_by_teacher(
    db: AsyncSession,
    *,
    year: int,
    week: int | None = None,
    month: int | None = None,
    teacher_ids: Iterable[int] | None = None,
) -> dict[int, AttendanceTally]:
    """Per-teacher counts for a week+year or month+year period."""
    stmt = (
        select(Attendance.teacher_id, Attendance.status, func.count(Attendance.id))
        .where(*_period_filters(week=week, year=year, month=month))
        .group_by(Attendance.teacher_id, Attendance.status)
    )
    if teacher_ids is not None:
        stmt = stmt.where(Attendance.teacher_id.in_(list(teacher_ids)))

    tallies: dict[int, AttendanceTally] = defaultdict(AttendanceTally)
    for teacher_id, status, count in (await db.execute(stmt)).all():
        tallies[teacher_id].add(status, count)
    return dict(tallies)


async def teacher_week_tally(
    db: AsyncSession, teacher_id: int, week: int, year: int
) -> AttendanceTally:
    tallies = await tally_by_teacher(db, week=week, year=year, teacher_ids=[teacher_id])
    return tallies.get(teacher_id, AttendanceTally())


async def summarize_active(
    db: AsyncSession, *, year: int, week: int | None = None, month: int | None = None
) -> list[dict[str, Any]]:
    """One summary per active teacher, ordered by name.  Teachers without records get zeros."""
    result = await db.execute(
        select(Teacher.id, Teacher.name)
        .where(Teacher.status == "active")
        .order_by(Teacher.name, Teacher.id)
    )
    teachers = result.all()
    tallies = await tally_by_teacher(
        db, week=week, year=year, month=month, teacher_ids=[t.id for t in teachers]
    )
    return [
        {
            "teacher_id": t.id,
            "teacher_name": t.name,
            **tallies.get(t.id, AttendanceTally()).as_dict(),
        }
        for t in teachers
    ]


def sort_by_percentage(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    # sorted() is stable, so equal percentages keep their name order
    return sorted(rows, key=lambda r: r["percentage"], reverse=True)


def _weekly_counts_stmt():
    attended = func.sum(case((Attendance.status.in_(ATTENDED_STATUSES), 1), else_=0))
    return select(
        Attendance.teacher_id,
        Attendance.week_number,
        Attendance.year,
        func.count(Attendance.id).label("total_lessons"),
        attended.label("attended"),
    ).group_by(Attendance.teacher_id, Attendance.year, Attendance.week_number)


async def weekly_trend(db: AsyncSession, teacher_id: int, weeks: int = 4) -> list[dict[str, Any]]:
    """The teacher's last ``weeks`` recorded weeks, oldest first."""
    stmt = (
        _weekly_counts_stmt()
        .where(Attendance.teacher_id == teacher_id)
        .order_by(Attendance.year.desc(), Attendance.week_number.desc())
        .limit(weeks)
    )
    rows = (await db.execute(stmt)).all()
    trend = [
        {
            "week_number": r.week_number,
            "year": r.year,
            "total_lessons": r.total_lessons,
            "attended": int(r.attended or 0),
            "percentage": attendance_percentage(int(r.attended or 0), r.total_lessons),
        }
        for r in rows
    ]
    trend.reverse()
    return trend


async def recent_history(
    db: AsyncSession, teacher_ids: Iterable[int], weeks: int = 4
) -> dict[int, list[dict[str, int]]]:
    """Latest ``weeks`` attendance percentages per teacher, newest first."""
    ids = list(teacher_ids)
    if not ids:
        return {}
    stmt = (
        _weekly_counts_stmt()
        .where(Attendance.teacher_id.in_(ids))
        .order_by(Attendance.teacher_id, Attendance.year.desc(), Attendance.week_number.desc())
    )
    history: dict[int, list[dict[str, int]]] = defaultdict(list)
    for r in (await db.execute(stmt)).all():
        if len(history[r.teacher_id]) >= weeks:
            continue
        history[r.teacher_id].append(
            {
                "week_number": r.week_number,
                "year": r.year,
                "percentage": attendance_percentage(int(r.attended or 0), r.total_lessons),
            }
        )
    return dict(history)


# ── Records ─────────────────────────────────────────────────────────
_ATTENDANCE_FIELDS = (
    "id",
    "teacher_id",
    "timetable_id",
    "time_slot",
    "week_number",
    "year",
    "day_of_week",
    "status",
    "notes",
    "recorded_by",
    "recorded_at",
)


async def list_week(db: AsyncSession, week: int, year: int) -> list[dict[str, Any]]:
    result = await db.execute(
        select(Attendance, Teacher.name, Subject.name)
        .join(Teacher, Attendance.teacher_id == Teacher.id)
        .outerjoin(TimetableEntry, Attendance.timetable_id == TimetableEntry.id)
        .outerjoin(Subject, TimetableEntry.subject_id == Subject.id)
        .where(Attendance.week_number == week, Attendance.year == year)
        .order_by(Attendance.day_of_week, Attendance.time_slot, Attendance.id)
    )
    return [
        {
            **{c: getattr(att, c) for c in _ATTENDANCE_FIELDS},
            "teacher_name": teacher_name,
            "subject_name": subject_name,
        }
        for att, teacher_name, subject_name in result.all()
    ]


async def _find_mark(db: AsyncSession, body: AttendanceMark, time_slot: str) -> Attendance | None:
    result = await db.execute(
        select(Attendance).where(
            Attendance.teacher_id == body.teacher_id,
            Attendance.day_of_week == body.day_of_week,
            Attendance.time_slot == time_slot,
            Attendance.week_number == body.week_number,
            Attendance.year == body.year,
        )
    )
    return result.scalar_one_or_none()


async def mark(db: AsyncSession, body: AttendanceMark, actor_id: int | None) -> Attendance:
    """Record attendance for one lesson, updating the existing row for the same slot/week.

    The lesson is matched on (teacher, day, time slot, week, year), so a mark
    made before the day's timetable was re-saved is still found and updated.
    """
    if await db.get(Teacher, body.teacher_id) is None:
        raise NotFoundError("Teacher not found")
    entry = await db.get(TimetableEntry, body.timetable_id)
    if entry is None:
        raise NotFoundError("Timetable entry not found")
    time_slot = entry.time_slot

    record = await _find_mark(db, body, time_slot)
    if record is None:
        try:
            record = Attendance(
                teacher_id=body.teacher_id,
                timetable_id=body.timetable_id,
                time_slot=time_slot,
                week_number=body.week_number,
                year=body.year,
                day_of_week=body.day_of_week,
                status=body.status,
                notes=body.notes,
                recorded_by=actor_id,
            )
            db.add(record)
            await db.commit()
            await db.refresh(record)
            logger.info(
                "Attendance %s for teacher %d (week %d/%d)",
                body.status, body.teacher_id, body.week_number, body.year,
            )
            return record
        except IntegrityError:
            # Another request inserted the same slot first; update that row instead
            await db.rollback()
            record = await _find_mark(db, body, time_slot)
            if record is None:
                raise
            logger.info("Attendance race handled for teacher %d", body.teacher_id)

    record.timetable_id = body.timetable_id
    record.status = body.status
    record.notes = body.notes
    record.recorded_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(record)
    return record
