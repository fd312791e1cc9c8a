"""Answer correctness rules.

Free-text normalisation: surrounding whitespace is stripped and the result is
case-folded. Inner whitespace is significant, so ``"Light House"`` does not
match ``"lighthouse"``.

Multiple choice accepts any index in the waypoint's correct-index set. Older
content only has the single ``correct_answer_index`` column, which is used
when the set is empty.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Protocol

# Reserved answer index for "no choice applies": intro stops and playtest unlocks.
NO_CHOICE = -1


class AnswerKind(str, enum.Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    FREE_TEXT = "free_text"


class AnswerKey(Protocol):
    """The hidden parts of a waypoint needed to judge an answer."""

    answer_type: str
    is_intro_location: bool
    correct_answer_index: int | None
    correct_answer_indices: list[int]
    free_text_answer: str | None


def normalize_free_text(value: str) -> str:
    return value.strip().casefold()


def free_text_matches(submitted: str | None, canonical: str | None) -> bool:
    if not submitted or not canonical:
        return False
    return normalize_free_text(submitted) == normalize_free_text(canonical)


def choice_matches(index: int | None, correct_indices: Iterable[int] | None, legacy_index: int | None = None) -> bool:
    if index is None:
        return False
    accepted = set(correct_indices or ())
    if accepted:
        return index in accepted
    return legacy_index is not None and index == legacy_index


def is_correct(
    key: AnswerKey,
    answer_index: int | None = NO_CHOICE,
    free_text: str | None = None,
    *,
    playtest_enabled: bool = False,
) -> bool:
    """Judge one submission against a waypoint's answer key."""
    if key.is_intro_location:
        return True
    if playtest_enabled and answer_index == NO_CHOICE:
        # operator unlock while play-testing
        return True
    if key.answer_type == AnswerKind.FREE_TEXT.value:
        return free_text_matches(free_text, key.free_text_answer)
    return choice_matches(answer_index, key.correct_answer_indices, key.correct_answer_index)
