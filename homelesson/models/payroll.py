"""
Payroll & Payment History models.

A payroll row is the weekly pay of one teacher.  A payment history row is
written once, when a payroll row is first marked paid, and never changed.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Index,
                        Integer, String, Text, UniqueConstraint)

from homelesson.db.base import Base


class PayrollRecord(Base):
    __tablename__ = "payroll"
    __table_args__ = (
        UniqueConstraint("teacher_id", "week_number", "year", name="uq_payroll_teacher_week"),
        Index("ix_payroll_period", "year", "week_number"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    teacher_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False
    )
    week_number: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    teaching_allowance: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    transport_allowance: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    bonus: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    deduction: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    total_amount: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    paid: bool = Column(Boolean, nullable=False, default=False, server_default="false")  # type: ignore[assignment]
    payment_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    processed_by: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    processed_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )


class PaymentHistory(Base):
    __tablename__ = "payment_history"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    teacher_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    payroll_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("payroll.id", ondelete="CASCADE"), nullable=True
    )
    amount: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    payment_type: str = Column(String(30), nullable=False, default="weekly_payroll")  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="completed")  # type: ignore[assignment]
    reference: str = Column(String(80), unique=True, nullable=False)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_by: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
