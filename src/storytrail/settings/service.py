"""Runtime application settings stored in ``app_settings``."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.db.models import AppSetting

logger = logging.getLogger(__name__)

PLAYTEST_KEY = "playtest_enabled"


async def read_playtest_enabled(db: AsyncSession, default: bool = False) -> bool:
    """Current playtest flag. Falls back to ``default`` when no row exists or the value is malformed."""
    setting = await db.get(AppSetting, PLAYTEST_KEY)
    if setting is None:
        return default
    value = setting.value
    if not isinstance(value, dict):
        logger.warning("Malformed %s setting: %r", PLAYTEST_KEY, value)
        return default
    return value.get("enabled") is True
