"""Completion endpoints — read the caller's finished run, or record one."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storytrail.auth.dependencies import Player, get_current_player
from storytrail.completion.schemas import CompletionRequest, CompletionResponse, RecordCompletionResponse
from storytrail.completion.service import CompletionRecorder
from storytrail.completion.timer import format_time
from storytrail.database import get_session

router = APIRouter(prefix="/api/v1/trails", tags=["Completions"])


@router.get("/{trail_id}/completion", response_model=CompletionResponse | None)
async def get_completion(
    trail_id: str,
    player: Player = Depends(get_current_player),
    db: AsyncSession = Depends(get_session),
) -> CompletionResponse | None:
    """The caller's completion for this trail, or null. A non-null result means the timer must not run."""
    record = await CompletionRecorder(db).get(player.id, trail_id)
    if record is None:
        return None
    return CompletionResponse(
        trail_id=trail_id,
        completion_time_ms=record.completion_time_ms,
        completed_at=record.completed_at,
        formatted_time=format_time(record.completion_time_ms),
    )


@router.post("/{trail_id}/completion", response_model=RecordCompletionResponse)
async def record_completion(
    trail_id: str,
    body: CompletionRequest,
    player: Player = Depends(get_current_player),
    db: AsyncSession = Depends(get_session),
) -> RecordCompletionResponse:
    """Record a finished run. Idempotent: the first stored time is kept and returned."""
    inserted, record = await CompletionRecorder(db).record(player.id, trail_id, body.completion_time_ms)
    return RecordCompletionResponse(
        trail_id=trail_id,
        recorded=inserted,
        completion_time_ms=record.completion_time_ms,
        completed_at=record.completed_at,
        formatted_time=format_time(record.completion_time_ms),
    )
