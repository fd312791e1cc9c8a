"""Completion recorder — one ranked time per (player, trail), first write wins."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail import cache
from storytrail.db.models import CompletionRecord
from storytrail.db.upsert import insert_ignore
from storytrail.exceptions import TrailNotFinishedError
from storytrail.leaderboard.service import leaderboard_cache_key
from storytrail.progress.store import ProgressStore
from storytrail.trails import sequencer
from storytrail.trails.service import TrailService

logger = logging.getLogger(__name__)


class CompletionRecorder:
    """The only writer of completion records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.trails = TrailService(db)
        self.progress = ProgressStore(db)

    async def get(self, player_id: str, trail_id: str) -> CompletionRecord | None:
        result = await self.db.execute(
            select(CompletionRecord).where(
                CompletionRecord.user_id == player_id,
                CompletionRecord.city_id == trail_id,
            )
        )
        return result.scalar_one_or_none()

    async def record(self, player_id: str, trail_id: str, completion_time_ms: int) -> tuple[bool, CompletionRecord]:
        """Persist a finished run.

        Refuses runs whose end stop is not solved. If the player already has
        a completion for this trail the new time is discarded, faster or not,
        and the stored record is returned with ``False``.
        """
        await self.trails.get_published_trail(trail_id)
        waypoints = await self.trails.list_waypoints(trail_id)
        completed = await self.progress.completed_ids(player_id, trail_id)
        if not sequencer.is_trail_finished(waypoints, completed):
            raise TrailNotFinishedError

        inserted = await insert_ignore(
            self.db,
            CompletionRecord,
            {
                "user_id": player_id,
                "city_id": trail_id,
                "completion_time_ms": completion_time_ms,
                "completed_at": datetime.now(timezone.utc),
            },
            index_elements=["user_id", "city_id"],
        )
        await self.db.commit()

        if inserted:
            logger.info("Trail %s completed by %s in %d ms", trail_id, player_id, completion_time_ms)
            await cache.invalidate(leaderboard_cache_key(trail_id))
        else:
            logger.info("Ignoring repeat completion of %s by %s", trail_id, player_id)

        stored = await self.get(player_id, trail_id)
        if stored is None:  # pragma: no cover - the unique row must exist after the upsert
            msg = f"completion for {player_id}/{trail_id} vanished after insert"
            raise RuntimeError(msg)
        return inserted, stored
