"""Progress store — which (player, waypoint) pairs are solved.

Append-only. ``record`` is the only write and only the answer validator calls
it; a duplicate insert is a silent no-op so a retried correct submission
behaves exactly like the first one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.db.models import ProgressRecord
from storytrail.db.upsert import insert_ignore

logger = logging.getLogger(__name__)


class ProgressStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record(self, player_id: str, trail_id: str, waypoint_id: str) -> bool:
        """Persist a solve and commit. Returns False when it was already recorded."""
        inserted = await insert_ignore(
            self.db,
            ProgressRecord,
            {
                "user_id": player_id,
                "city_id": trail_id,
                "location_id": waypoint_id,
                "completed_at": datetime.now(timezone.utc),
            },
            index_elements=["user_id", "location_id"],
        )
        await self.db.commit()
        if not inserted:
            logger.debug("Duplicate progress write ignored for %s/%s", player_id, waypoint_id)
        return inserted

    async def completed_ids(self, player_id: str, trail_id: str) -> set[str]:
        result = await self.db.execute(
            select(ProgressRecord.location_id).where(
                ProgressRecord.user_id == player_id,
                ProgressRecord.city_id == trail_id,
            )
        )
        return set(result.scalars().all())
