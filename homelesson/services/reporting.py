"""
Read-only analytics, teacher reports and the full data export.

Performance metrics aggregate attendance and paid payroll in two separate
grouped queries and merge them per teacher, so neither side's row count
inflates the other's sums.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import case, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.db.base import model_to_dict
from homelesson.models.attendance import ATTENDED_STATUSES, Attendance
from homelesson.models.payroll import PaymentHistory, PayrollRecord
from homelesson.models.report import Report
from homelesson.models.teacher import Subject, Teacher
from homelesson.models.timetable import TimetableEntry
from homelesson.models.user import User
from homelesson.services import attendance
from homelesson.services.teachers import get_teacher

logger = logging.getLogger(__name__)

PAYROLL_ANALYTICS_PERIODS = 12


# ── Analytics ──────────────────────────────────────────────────────
async def subject_distribution(db: AsyncSession) -> list[dict[str, Any]]:
    """Lessons per subject over non-break slots, with the teachers who take them."""
    result = await db.execute(
        select(Subject.id, Subject.name, TimetableEntry.id, Teacher.name)
        .outerjoin(
            TimetableEntry,
            (TimetableEntry.subject_id == Subject.id) & TimetableEntry.is_break.is_(False),
        )
        .outerjoin(Teacher, TimetableEntry.teacher_id == Teacher.id)
        .order_by(Subject.name)
    )

    by_subject: dict[int, dict[str, Any]] = {}
    for subject_id, subject_name, entry_id, teacher_name in result.all():
        item = by_subject.setdefault(
            subject_id,
            {"subject_id": subject_id, "subject_name": subject_name, "lessons": set(), "teachers": set()},
        )
        if entry_id is not None:
            item["lessons"].add(entry_id)
        if teacher_name is not None:
            item["teachers"].add(teacher_name)

    distribution = [
        {
            "subject_id": item["subject_id"],
            "subject_name": item["subject_name"],
            "total_lessons": len(item["lessons"]),
            "teachers_count": len(item["teachers"]),
            "teachers": sorted(item["teachers"]),
        }
        for item in by_subject.values()
    ]
    distribution.sort(key=lambda d: d["total_lessons"], reverse=True)
    return distribution


async def payroll_analytics(db: AsyncSession) -> list[dict[str, Any]]:
    """Totals for the latest paid payroll periods, newest first."""
    result = await db.execute(
        select(
            PayrollRecord.week_number,
            PayrollRecord.year,
            func.count(distinct(PayrollRecord.teacher_id)).label("teachers_paid"),
            func.sum(PayrollRecord.total_amount).label("total_amount"),
            func.avg(PayrollRecord.total_amount).label("average_payment"),
        )
        .where(PayrollRecord.paid.is_(True))
        .group_by(PayrollRecord.year, PayrollRecord.week_number)
        .order_by(PayrollRecord.year.desc(), PayrollRecord.week_number.desc())
        .limit(PAYROLL_ANALYTICS_PERIODS)
    )
    return [
        {
            "week_number": r.week_number,
            "year": r.year,
            "teachers_paid": r.teachers_paid,
            "total_amount": int(r.total_amount or 0),
            "average_payment": round(float(r.average_payment or 0), 2),
        }
        for r in result.all()
    ]


async def performance(db: AsyncSession) -> list[dict[str, Any]]:
    teachers = (
        await db.execute(
            select(Teacher.id, Teacher.name)
            .where(Teacher.status == "active")
            .order_by(Teacher.name, Teacher.id)
        )
    ).all()

    attended = func.sum(case((Attendance.status.in_(ATTENDED_STATUSES), 1), else_=0))
    attendance_rows = await db.execute(
        select(
            Attendance.teacher_id,
            func.count(distinct(Attendance.year * 100 + Attendance.week_number)),
            func.count(Attendance.id),
            attended,
        ).group_by(Attendance.teacher_id)
    )
    att = {r[0]: (r[1], r[2], int(r[3] or 0)) for r in attendance_rows.all()}

    payroll_rows = await db.execute(
        select(
            PayrollRecord.teacher_id,
            func.sum(PayrollRecord.total_amount),
            func.avg(PayrollRecord.total_amount),
        )
        .where(PayrollRecord.paid.is_(True))
        .group_by(PayrollRecord.teacher_id)
    )
    pay = {r[0]: (int(r[1] or 0), float(r[2] or 0)) for r in payroll_rows.all()}

    metrics = []
    for teacher_id, name in teachers:
        weeks_taught, total_lessons, attended_lessons = att.get(teacher_id, (0, 0, 0))
        total_earnings, avg_weekly = pay.get(teacher_id, (0, 0.0))
        metrics.append(
            {
                "teacher_id": teacher_id,
                "teacher_name": name,
                "weeks_taught": weeks_taught,
                "total_lessons": total_lessons,
                "attended_lessons": attended_lessons,
                "attendance_rate": attendance.attendance_percentage(attended_lessons, total_lessons),
                "total_earnings": total_earnings,
                "avg_weekly_earnings": round(avg_weekly, 2),
            }
        )
    metrics.sort(key=lambda m: m["attendance_rate"], reverse=True)
    return metrics


# ── Reports ─────────────────────────────────────────────────────────
async def generate_teacher_report(
    db: AsyncSession, teacher_id: int, week: int, year: int, actor_id: int | None
) -> dict[str, Any]:
    """Log a teacher report and return the data it is built from."""
    teacher = await get_teacher(db, teacher_id)

    lines = await db.execute(
        select(
            Attendance.status,
            Attendance.notes,
            Attendance.recorded_at,
            Attendance.day_of_week,
            Attendance.time_slot,
            Subject.name.label("subject_name"),
        )
        .outerjoin(TimetableEntry, Attendance.timetable_id == TimetableEntry.id)
        .outerjoin(Subject, TimetableEntry.subject_id == Subject.id)
        .where(
            Attendance.teacher_id == teacher_id,
            Attendance.week_number == week,
            Attendance.year == year,
        )
        .order_by(Attendance.day_of_week, Attendance.time_slot)
    )
    attendance_lines = [dict(r._mapping) for r in lines.all()]

    payroll_result = await db.execute(
        select(PayrollRecord).where(
            PayrollRecord.teacher_id == teacher_id,
            PayrollRecord.week_number == week,
            PayrollRecord.year == year,
        )
    )
    payroll = payroll_result.scalar_one_or_none()

    report = Report(
        report_type="teacher",
        description=f"Teacher report for {teacher.name} - Week {week}",
        generated_by=actor_id,
    )
    db.add(report)
    await db.commit()
    await db.refresh(report)
    logger.info("Report %d generated for teacher %d (week %d/%d)", report.id, teacher_id, week, year)

    return {
        "message": "Report generated successfully",
        "report": model_to_dict(report),
        "data": {
            "teacher": model_to_dict(teacher),
            "week_number": week,
            "year": year,
            "attendance": attendance_lines,
            "payroll": {**model_to_dict(payroll), "teacher_name": teacher.name} if payroll else {},
        },
    }


async def report_history(
    db: AsyncSession, limit: int = 10, offset: int = 0
) -> tuple[list[dict[str, Any]], int]:
    result = await db.execute(
        select(Report, User.full_name)
        .outerjoin(User, Report.generated_by == User.id)
        .order_by(Report.created_at.desc(), Report.id.desc())
        .limit(limit)
        .offset(offset)
    )
    reports = [{**model_to_dict(r), "generated_by_name": name} for r, name in result.all()]
    total = (await db.execute(select(func.count(Report.id)))).scalar() or 0
    return reports, total


async def export_snapshot(db: AsyncSession) -> dict[str, Any]:
    """Every domain table as a list of row dicts, plus the export time."""
    tables = {
        "teachers": (Teacher, Teacher.name),
        "subjects": (Subject, Subject.name),
        "timetable": (TimetableEntry, TimetableEntry.day_of_week),
        "attendance": (Attendance, Attendance.id),
        "payroll": (PayrollRecord, PayrollRecord.id),
        "payment_history": (PaymentHistory, PaymentHistory.id),
    }
    snapshot: dict[str, Any] = {}
    for key, (model, order) in tables.items():
        result = await db.execute(select(model).order_by(order, model.id))
        snapshot[key] = [model_to_dict(row) for row in result.scalars().all()]
    snapshot["export_date"] = datetime.now(timezone.utc)
    return snapshot
