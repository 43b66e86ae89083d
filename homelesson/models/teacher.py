"""
Teacher & Subject models: who teaches, and what can be taught.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from homelesson.db.base import Base

TEACHER_STATUSES = ("active", "inactive", "on-leave")


class Teacher(Base):
    __tablename__ = "teachers"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False, index=True)  # type: ignore[assignment]
    phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    subjects: list[str] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    # Weekly base rates, whole currency units
    teaching_allowance: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    transport_allowance: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20), nullable=False, default="active", server_default="active", index=True
    )  # active | inactive | on-leave
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class Subject(Base):
    __tablename__ = "subjects"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), unique=True, nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
