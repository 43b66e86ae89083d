"""
Settings endpoints: admin-editable key/value configuration.

The payroll engine reads the allowance amounts and the transport toggle
from here on every run, so a change applies to the next processed week.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from homelesson.api.v1.deps import get_db, require_admin
from homelesson.models.system_config import SystemConfig
from homelesson.models.user import User
from homelesson.schemas.report import ConfigEntryRead, ConfigEntryUpdate
from homelesson.services import config_store

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[ConfigEntryRead])
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[SystemConfig]:
    return await config_store.list_values(db)


@router.put("/{key}", response_model=ConfigEntryRead)
async def update_setting(
    body: ConfigEntryUpdate,
    key: str = Path(min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> SystemConfig:
    entry = await config_store.set_value(db, key, body.config_value, body.description)
    await db.commit()
    await db.refresh(entry)
    logger.info("Setting %s updated to %r", key, entry.config_value)
    return entry
