"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.config import get_settings
from storytrail.database import get_session
from storytrail.settings.service import read_playtest_enabled


async def get_playtest_enabled(db: AsyncSession = Depends(get_session)) -> bool:
    """Playtest flag as of this request, handed to services as a plain value."""
    return await read_playtest_enabled(db, default=get_settings().playtest_default)
