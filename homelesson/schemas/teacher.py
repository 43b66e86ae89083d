"""Pydantic schemas for Teacher / Subject."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

_PHONE_RE = re.compile(r"^\+?[0-9 ()-]{7,20}$")

TeacherStatus = Literal["active", "inactive", "on-leave"]

# Columns that may be left out of a patch but never set to null
_NOT_NULLABLE = ("name", "subjects", "teaching_allowance", "transport_allowance", "status")


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 200:
        raise ValueError("Name must not exceed 200 characters")
    return v


def _clean_phone(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not _PHONE_RE.match(v):
        raise ValueError("Invalid phone number")
    return v


def _clean_email(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Invalid email address")
    return v


def _clean_subjects(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    cleaned = [s.strip() for s in v if s and s.strip()]
    return list(dict.fromkeys(cleaned))


# ── Teacher ─────────────────────────────────────────────────────────
class TeacherCreate(BaseModel):
    name: str
    phone: str | None = None
    email: str | None = None
    subjects: list[str] = Field(default_factory=list)
    teaching_allowance: int = Field(ge=0)
    transport_allowance: int = Field(ge=0)
    status: TeacherStatus = "active"
    notes: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return _clean_phone(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _clean_email(v)

    @field_validator("subjects")
    @classmethod
    def _subjects(cls, v: list[str]) -> list[str]:
        return _clean_subjects(v) or []


class TeacherUpdate(BaseModel):
    """Partial update.  Only fields present in the request body are applied."""

    name: str | None = None
    phone: str | None = None
    email: str | None = None
    subjects: list[str] | None = None
    teaching_allowance: int | None = Field(default=None, ge=0)
    transport_allowance: int | None = Field(default=None, ge=0)
    status: TeacherStatus | None = None
    notes: str | None = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _clean_name(v)

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return _clean_phone(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _clean_email(v)

    @field_validator("subjects")
    @classmethod
    def _subjects(cls, v: list[str] | None) -> list[str] | None:
        return _clean_subjects(v)

    @model_validator(mode="after")
    def _reject_null_required(self) -> "TeacherUpdate":
        for field in _NOT_NULLABLE:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TeacherRead(BaseModel):
    id: int
    name: str
    phone: str | None
    email: str | None
    subjects: list[str]
    teaching_allowance: int
    transport_allowance: int
    status: str
    notes: str | None = None
    created_at: datetime | None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class WeekPercentage(BaseModel):
    week_number: int
    year: int
    percentage: int


class PayrollPeriodPreview(BaseModel):
    week_number: int
    year: int
    total_amount: int
    paid: bool


class TeacherListItem(TeacherRead):
    attendance_history: list[WeekPercentage] = Field(default_factory=list)


class TeacherDetail(TeacherRead):
    payroll_history: list[PayrollPeriodPreview] = Field(default_factory=list)


# ── Subject ─────────────────────────────────────────────────────────
class SubjectCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Subject name must not be empty")
        if len(v) > 100:
            raise ValueError("Subject name must not exceed 100 characters")
        return v


class SubjectRead(BaseModel):
    id: int
    name: str
    created_at: datetime | None

    model_config = {"from_attributes": True}
