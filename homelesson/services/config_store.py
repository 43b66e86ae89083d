"""
Key/value settings stored in ``system_config``.

Values are strings in the database; the typed getters fall back to the
given default when a key is unset or cannot be parsed.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.core.config import settings
from homelesson.core.exceptions import ValidationFailed
from homelesson.models.system_config import (TEACHING_ALLOWANCE_KEY,
                                             TRANSPORT_ALLOWANCE_KEY,
                                             TRANSPORT_ENABLED_KEY,
                                             SystemConfig)

logger = logging.getLogger(__name__)

_INT_KEYS = {TEACHING_ALLOWANCE_KEY, TRANSPORT_ALLOWANCE_KEY}
_BOOL_KEYS = {TRANSPORT_ENABLED_KEY}


def default_entries() -> dict[str, tuple[str, str]]:
    """Known keys with their startup value and description."""
    return {
        TEACHING_ALLOWANCE_KEY: (
            str(settings.DEFAULT_TEACHING_ALLOWANCE),
            "Weekly teaching allowance granted to every eligible teacher",
        ),
        TRANSPORT_ALLOWANCE_KEY: (
            str(settings.DEFAULT_TRANSPORT_ALLOWANCE),
            "Weekly transport allowance granted when enabled",
        ),
        TRANSPORT_ENABLED_KEY: (
            "true" if settings.DEFAULT_TRANSPORT_ENABLED else "false",
            "Whether payroll includes the transport allowance",
        ),
    }


async def get_value(db: AsyncSession, key: str, default: str | None = None) -> str | None:
    result = await db.execute(
        select(SystemConfig.config_value).where(SystemConfig.config_key == key)
    )
    value = result.scalar_one_or_none()
    return default if value is None else value


async def get_int(db: AsyncSession, key: str, default: int) -> int:
    raw = await get_value(db, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Config %s has non-integer value %r, using %d", key, raw, default)
        return default


async def get_bool(db: AsyncSession, key: str, default: bool) -> bool:
    raw = await get_value(db, key)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


async def list_values(db: AsyncSession) -> list[SystemConfig]:
    result = await db.execute(select(SystemConfig).order_by(SystemConfig.config_key))
    return list(result.scalars().all())


def _validate(key: str, value: str) -> str:
    value = value.strip()
    if key in _INT_KEYS:
        # isdigit alone accepts characters such as "²" that int() rejects
        if not (value.isascii() and value.isdigit()):
            raise ValidationFailed(
                errors=[{"field": "config_value", "message": "Must be a non-negative integer"}]
            )
    elif key in _BOOL_KEYS:
        if value.lower() not in ("true", "false"):
            raise ValidationFailed(
                errors=[{"field": "config_value", "message": "Must be 'true' or 'false'"}]
            )
        value = value.lower()
    return value


async def set_value(
    db: AsyncSession, key: str, value: str, description: str | None = None
) -> SystemConfig:
    """Insert or update one key.  The caller commits."""
    value = _validate(key, value)
    result = await db.execute(select(SystemConfig).where(SystemConfig.config_key == key))
    entry = result.scalar_one_or_none()
    if entry is None:
        entry = SystemConfig(config_key=key, config_value=value, description=description)
        db.add(entry)
    else:
        entry.config_value = value
        if description is not None:
            entry.description = description
    await db.flush()
    return entry


async def seed_defaults(db: AsyncSession) -> int:
    """Create any missing known key.  Returns how many were added."""
    existing = {e.config_key for e in await list_values(db)}
    added = 0
    for key, (value, description) in default_entries().items():
        if key not in existing:
            db.add(SystemConfig(config_key=key, config_value=value, description=description))
            added += 1
    if added:
        await db.commit()
    return added
