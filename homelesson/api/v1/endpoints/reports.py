"""
Reporting endpoints: teacher reports, report history, data export, payroll
CSV download and the public health check.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import current_iso_week, get_current_active_user, get_db
from homelesson.models.user import User
from homelesson.schemas.common import HealthResponse
from homelesson.schemas.report import ReportHistoryPage, TeacherReportResponse
from homelesson.services import payroll, reporting

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)

_PAYROLL_CSV_COLUMNS = (
    "teacher_id",
    "teacher_name",
    "week_number",
    "year",
    "teaching_allowance",
    "transport_allowance",
    "bonus",
    "deduction",
    "total_amount",
    "paid",
    "payment_date",
)


@router.post("/reports/teacher/{teacher_id}", response_model=TeacherReportResponse)
async def generate_teacher_report(
    teacher_id: int,
    week: Optional[int] = Query(default=None, ge=1, le=53),
    year: Optional[int] = Query(default=None, ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    """Log a report for one teacher and week, returning its attendance and payroll."""
    default_week, default_year = current_iso_week()
    return await reporting.generate_teacher_report(
        db, teacher_id, week or default_week, year or default_year, current_user.id
    )


@router.get("/reports/history", response_model=ReportHistoryPage)
async def report_history(
    limit: int = Query(default=10, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ReportHistoryPage:
    reports, total = await reporting.report_history(db, limit=limit, offset=offset)
    return ReportHistoryPage(reports=reports, total=total)


@router.get("/reports/export")
async def export_data(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> dict[str, Any]:
    """Every domain table in one JSON document."""
    snapshot = await reporting.export_snapshot(db)
    logger.info(
        "Data export: %d teachers, %d payroll rows",
        len(snapshot["teachers"]), len(snapshot["payroll"]),
    )
    return snapshot


@router.get("/reports/payroll/{week}/{year}/csv")
async def payroll_csv(
    week: int = Path(ge=1, le=53),
    year: int = Path(ge=2023, le=2100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> StreamingResponse:
    """Download the week's payroll as CSV."""
    rows, _total = await payroll.week_records(db, week, year)

    def iter_csv():
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(_PAYROLL_CSV_COLUMNS)
        for row in rows:
            writer.writerow(["" if row.get(c) is None else row[c] for c in _PAYROLL_CSV_COLUMNS])
        yield buffer.getvalue()

    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=payroll_{year}_w{week:02d}.csv"
        },
    )


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> JSONResponse:
    """Public health check: database connectivity."""
    healthy = await request.app.state.database.ping()
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        database="connected" if healthy else "disconnected",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
