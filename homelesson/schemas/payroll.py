"""Pydantic schemas for Payroll and Payment History."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class PayrollRead(BaseModel):
    id: int
    teacher_id: int
    week_number: int
    year: int
    teaching_allowance: int
    transport_allowance: int
    bonus: int
    deduction: int
    total_amount: int
    paid: bool
    payment_date: date | None = None
    processed_by: int | None = None
    processed_at: datetime | None = None
    teacher_name: str | None = None

    model_config = {"from_attributes": True}


class PayrollWeekResponse(BaseModel):
    payroll: list[PayrollRead]
    total: int


class PayrollProcessResponse(BaseModel):
    message: str
    week_number: int
    year: int
    teachers_processed: int
    total_amount: int


class PayrollAdjust(BaseModel):
    """Manual adjustment.  Omitted fields keep their stored value."""

    bonus: int | None = Field(default=None, ge=0)
    deduction: int | None = Field(default=None, ge=0)
    paid: bool | None = None

    model_config = {"extra": "forbid"}


class PaymentHistoryRead(BaseModel):
    id: int
    teacher_id: int
    payroll_id: int | None = None
    amount: int
    payment_type: str
    status: str
    reference: str
    notes: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None
    teacher_name: str | None = None

    model_config = {"from_attributes": True}


class PaymentHistoryPage(BaseModel):
    payments: list[PaymentHistoryRead]
    total: int
