"""
System configuration model: free-form key/value settings.

Values are stored as strings; readers parse them (see
``homelesson.services.config_store``).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from homelesson.db.base import Base

TEACHING_ALLOWANCE_KEY = "teaching_allowance"
TRANSPORT_ALLOWANCE_KEY = "transport_allowance"
TRANSPORT_ENABLED_KEY = "enable_transport_allowance"


class SystemConfig(Base):
    __tablename__ = "system_config"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    config_key: str = Column(String(100), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    config_value: str = Column(String(500), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
