"""Server-authoritative answer validation.

The correct answer never leaves this module: callers learn only whether a
submission was right and, if so, the clue it unlocks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.db.models import Waypoint
from storytrail.exceptions import ValidationMismatchError, WaypointNotFoundError
from storytrail.progress.store import ProgressStore
from storytrail.trails.service import TrailService
from storytrail.validation.answers import NO_CHOICE, is_correct

logger = structlog.get_logger()


@dataclass(frozen=True)
class ValidationResult:
    correct: bool
    clue_text: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Wire shape: ``{correct, clue_text}`` when right, just ``{correct}`` when wrong."""
        if not self.correct:
            return {"correct": False}
        return {"correct": True, "clue_text": self.clue_text}


class AnswerValidator:
    """Checks a submission and records the solve. The only writer of progress records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.trails = TrailService(db)
        self.progress = ProgressStore(db)

    async def validate(
        self,
        player_id: str,
        trail_id: str,
        waypoint_id: str,
        answer_index: int | None = NO_CHOICE,
        free_text: str | None = None,
        *,
        playtest_enabled: bool = False,
    ) -> ValidationResult:
        """Validate an answer.

        Preconditions are checked in order, each with its own error: trail
        exists and is published, entitlement for paid trails (skipped while
        play-testing), waypoint exists, waypoint belongs to the trail.

        A correct answer is persisted before returning. Re-submitting a
        correct answer is not an error; the duplicate write is ignored.
        """
        log = logger.bind(player_id=player_id, trail_id=trail_id, waypoint_id=waypoint_id)

        await self.trails.ensure_access(player_id, trail_id, playtest_enabled=playtest_enabled)

        waypoint = await self.db.get(Waypoint, waypoint_id)
        if waypoint is None:
            raise WaypointNotFoundError
        if waypoint.city_id != trail_id:
            log.warning("waypoint_trail_mismatch", actual_trail_id=waypoint.city_id)
            raise ValidationMismatchError

        if not is_correct(waypoint, answer_index, free_text, playtest_enabled=playtest_enabled):
            log.info("answer_rejected")
            return ValidationResult(correct=False)

        if not await self.progress.record(player_id, trail_id, waypoint.id):
            log.info("duplicate_progress_ignored")
        log.info("answer_accepted", is_end=waypoint.is_end_location)

        return ValidationResult(
            correct=True,
            clue_text=None if waypoint.is_intro_location else waypoint.clue_text,
        )
