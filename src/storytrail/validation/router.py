"""``POST /validate-answer`` — the answer submission contract used by the player app."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.auth.dependencies import Player, get_current_player
from storytrail.database import get_session
from storytrail.dependencies import get_playtest_enabled
from storytrail.exceptions import MissingFieldsError
from storytrail.validation.schemas import ValidateAnswerRequest
from storytrail.validation.service import AnswerValidator

router = APIRouter(tags=["Answers"])


@router.post("/validate-answer")
async def validate_answer(
    body: ValidateAnswerRequest,
    player: Player = Depends(get_current_player),
    playtest_enabled: bool = Depends(get_playtest_enabled),
    db: AsyncSession = Depends(get_session),
) -> dict:
    """Judge an answer server-side.

    200 → ``{"correct": true, "clue_text": ...}`` or ``{"correct": false}``.
    Errors are ``{"error": ...}`` with 400/401/403/404/500.
    """
    if not body.city_id or not body.location_id:
        raise MissingFieldsError

    result = await AnswerValidator(db).validate(
        player.id,
        body.city_id,
        body.location_id,
        body.answer_index,
        body.free_text_answer,
        playtest_enabled=playtest_enabled,
    )
    return result.to_response()
