"""
Weekly payroll: processing from attendance, manual adjustments, payment log.

Eligibility is all-or-nothing: a teacher with at least one attended lesson
in the week gets the full configured teaching allowance (and the transport
allowance when it is switched on); a teacher with none gets nothing.  The
amount is not prorated by attendance percentage.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.config import settings
from homelesson.core.exceptions import NotFoundError, TransactionFailure
from homelesson.db.base import model_to_dict
from homelesson.db.session import atomic
from homelesson.models.payroll import PaymentHistory, PayrollRecord
from homelesson.models.system_config import (TEACHING_ALLOWANCE_KEY,
                                             TRANSPORT_ALLOWANCE_KEY,
                                             TRANSPORT_ENABLED_KEY)
from homelesson.models.teacher import Teacher
from homelesson.schemas.payroll import PayrollAdjust
from homelesson.services import attendance, config_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllowancePolicy:
    teaching_amount: int
    transport_amount: int
    transport_enabled: bool

    def allowances_for(self, percentage: int) -> tuple[int, int]:
        """(teaching, transport) granted for a week with the given attendance percentage."""
        if percentage <= 0:
            return 0, 0
        transport = self.transport_amount if self.transport_enabled else 0
        return self.teaching_amount, transport


async def load_policy(db: AsyncSession) -> AllowancePolicy:
    return AllowancePolicy(
        teaching_amount=await config_store.get_int(
            db, TEACHING_ALLOWANCE_KEY, settings.DEFAULT_TEACHING_ALLOWANCE
        ),
        transport_amount=await config_store.get_int(
            db, TRANSPORT_ALLOWANCE_KEY, settings.DEFAULT_TRANSPORT_ALLOWANCE
        ),
        transport_enabled=await config_store.get_bool(
            db, TRANSPORT_ENABLED_KEY, settings.DEFAULT_TRANSPORT_ENABLED
        ),
    )


def compute_total(record: PayrollRecord) -> int:
    return (
        record.teaching_allowance
        + record.transport_allowance
        + record.bonus
        - record.deduction
    )


# ── Processing ──────────────────────────────────────────────────────
async def process_week(
    db: AsyncSession, week: int, year: int, actor_id: int | None
) -> list[PayrollRecord]:
    """Write one payroll row per active teacher for the week, all or nothing.

    Existing rows are updated in place; their bonus, deduction and paid
    state are left as they are.
    """
    try:
        async with atomic(db):
            result = await db.execute(
                select(Teacher).where(Teacher.status == "active").order_by(Teacher.name, Teacher.id)
            )
            teachers = list(result.scalars().all())
            teacher_ids = [t.id for t in teachers]

            policy = await load_policy(db)
            tallies = await attendance.tally_by_teacher(
                db, week=week, year=year, teacher_ids=teacher_ids
            )
            existing_result = await db.execute(
                select(PayrollRecord).where(
                    PayrollRecord.week_number == week,
                    PayrollRecord.year == year,
                    PayrollRecord.teacher_id.in_(teacher_ids),
                )
            )
            existing = {r.teacher_id: r for r in existing_result.scalars().all()}

            now = datetime.now(timezone.utc)
            records: list[PayrollRecord] = []
            for teacher in teachers:
                tally = tallies.get(teacher.id, attendance.AttendanceTally())
                teaching, transport = policy.allowances_for(tally.percentage)

                record = existing.get(teacher.id)
                if record is None:
                    record = PayrollRecord(
                        teacher_id=teacher.id,
                        week_number=week,
                        year=year,
                        bonus=0,
                        deduction=0,
                        paid=False,
                    )
                    db.add(record)
                record.teaching_allowance = teaching
                record.transport_allowance = transport
                record.total_amount = teaching + transport
                record.processed_by = actor_id
                record.processed_at = now
                records.append(record)

            await db.flush()
    except Exception as exc:
        raise TransactionFailure(f"Payroll processing failed for week {week}/{year}") from exc

    logger.info(
        "Payroll processed for week %d/%d: %d teachers, total %d",
        week, year, len(records), sum(r.total_amount for r in records),
    )
    return records


# ── Adjustments ─────────────────────────────────────────────────────
def _payment_reference(record: PayrollRecord) -> str:
    return f"PAY-{record.teacher_id}-{record.week_number}-{uuid.uuid4().hex[:12].upper()}"


async def adjust(
    db: AsyncSession, payroll_id: int, changes: PayrollAdjust, actor_id: int | None
) -> PayrollRecord:
    """Apply bonus/deduction/paid changes and log the payment on the first paid transition."""
    record = await db.get(PayrollRecord, payroll_id)
    if record is None:
        raise NotFoundError("Payroll record not found")

    try:
        async with atomic(db):
            if changes.bonus is not None:
                record.bonus = changes.bonus
            if changes.deduction is not None:
                record.deduction = changes.deduction
            record.total_amount = compute_total(record)

            if changes.paid is True and not record.paid:
                record.paid = True
                record.payment_date = date.today()
                db.add(
                    PaymentHistory(
                        teacher_id=record.teacher_id,
                        payroll_id=record.id,
                        amount=record.total_amount,
                        payment_type="weekly_payroll",
                        status="completed",
                        reference=_payment_reference(record),
                        notes=f"Weekly payroll for Week {record.week_number}, {record.year}",
                        created_by=actor_id,
                    )
                )
                logger.info(
                    "Payroll %d paid: teacher %d, amount %d",
                    record.id, record.teacher_id, record.total_amount,
                )
            elif changes.paid is False:
                record.paid = False
            await db.flush()
    except SQLAlchemyError as exc:
        raise TransactionFailure(f"Payroll adjustment failed for record {payroll_id}") from exc

    return record


# ── Reads ───────────────────────────────────────────────────────────
async def week_records(
    db: AsyncSession, week: int, year: int
) -> tuple[list[dict[str, Any]], int]:
    """The week's payroll rows with teacher names, plus the sum of their totals."""
    result = await db.execute(
        select(PayrollRecord, Teacher.name)
        .join(Teacher, PayrollRecord.teacher_id == Teacher.id)
        .where(PayrollRecord.week_number == week, PayrollRecord.year == year)
        .order_by(Teacher.name, Teacher.id)
    )
    rows = [
        {**model_to_dict(record), "teacher_name": name} for record, name in result.all()
    ]
    return rows, sum(r["total_amount"] for r in rows)


async def payment_history(
    db: AsyncSession, limit: int = 20, offset: int = 0
) -> tuple[list[dict[str, Any]], int]:
    result = await db.execute(
        select(PaymentHistory, Teacher.name)
        .join(Teacher, PaymentHistory.teacher_id == Teacher.id)
        .order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc())
        .limit(limit)
        .offset(offset)
    )
    payments = [{**model_to_dict(p), "teacher_name": name} for p, name in result.all()]
    total = (await db.execute(select(func.count(PaymentHistory.id)))).scalar() or 0
    return payments, total
