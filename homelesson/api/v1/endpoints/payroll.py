"""
Payroll endpoints: weekly processing, adjustments and payment history.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import get_current_active_user, get_db, require_admin
from homelesson.models.payroll import PayrollRecord
from homelesson.models.user import User
from homelesson.schemas.payroll import (PaymentHistoryPage, PayrollAdjust,
                                        PayrollProcessResponse, PayrollRead,
                                        PayrollWeekResponse)
from homelesson.services import payroll

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post("/process/{week}/{year}", response_model=PayrollProcessResponse)
async def process_payroll(
    week: int = Path(ge=1, le=53),
    year: int = Path(ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> PayrollProcessResponse:
    """Compute every active teacher's pay for the week in one batch."""
    records = await payroll.process_week(db, week, year, admin.id)
    return PayrollProcessResponse(
        message="Payroll processed successfully",
        week_number=week,
        year=year,
        teachers_processed=len(records),
        total_amount=sum(r.total_amount for r in records),
    )


@router.get("/week/{week}/{year}", response_model=PayrollWeekResponse)
async def week_payroll(
    week: int = Path(ge=1, le=53),
    year: int = Path(ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> PayrollWeekResponse:
    rows, total = await payroll.week_records(db, week, year)
    return PayrollWeekResponse(payroll=rows, total=total)


@router.put("/adjust/{payroll_id}", response_model=PayrollRead)
async def adjust_payroll(
    payroll_id: int,
    body: PayrollAdjust,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> PayrollRecord:
    """Set bonus/deduction and mark paid.  The first payment is logged to history."""
    return await payroll.adjust(db, payroll_id, body, admin.id)


@router.get("/history", response_model=PaymentHistoryPage)
async def payment_history(
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> PaymentHistoryPage:
    payments, total = await payroll.payment_history(db, limit=limit, offset=offset)
    return PaymentHistoryPage(payments=payments, total=total)
