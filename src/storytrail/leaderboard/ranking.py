"""Deterministic leaderboard ranking.

Completions ranked by completion_time_ms ASC, then by earliest completed_at,
then by user_id as the final tiebreaker so equal times never swap places
between reads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from storytrail.completion.timer import format_time

ANONYMOUS = "Anonymous"


def display_name(player_name: str | None) -> str:
    """Public name for a leaderboard row; blank names fall back to Anonymous."""
    if player_name and player_name.strip():
        return player_name.strip()
    return ANONYMOUS


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.max.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def rank_completions(completions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Rank completions fastest first.

    Input: list of dicts with at least:
        - user_id: str
        - completion_time_ms: int
        - completed_at: datetime (optional, for tiebreaking)
        - player_name: str | None (optional)

    Output: new list sorted and augmented with:
        - rank: int (1-indexed, no shared ranks)
        - name: str
        - formatted_time: str
    """
    if not completions:
        return []

    def sort_key(c: dict[str, Any]) -> tuple[int, datetime, str]:
        return (
            c["completion_time_ms"],
            _as_utc(c.get("completed_at")),
            str(c["user_id"]),
        )

    ranked = []
    for idx, c in enumerate(sorted(completions, key=sort_key)):
        entry = dict(c)
        entry["rank"] = idx + 1
        entry["name"] = display_name(c.get("player_name"))
        entry["formatted_time"] = format_time(c["completion_time_ms"])
        ranked.append(entry)
    return ranked
