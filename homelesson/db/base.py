"""
Declarative base shared by every ORM model.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models annotate plain ``Column`` attributes rather than ``Mapped[]``.
    __allow_unmapped__ = True


def model_to_dict(obj: Base) -> dict[str, Any]:
    """Column values of one ORM row, keyed by column name."""
    return {c.key: getattr(obj, c.key) for c in obj.__table__.columns}
