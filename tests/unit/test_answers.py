"""Unit tests for answer correctness rules."""

from dataclasses import dataclass, field

from storytrail.validation.answers import (
    NO_CHOICE,
    choice_matches,
    free_text_matches,
    is_correct,
    normalize_free_text,
)


@dataclass
class Key:
    answer_type: str = "multiple_choice"
    is_intro_location: bool = False
    correct_answer_index: int | None = None
    correct_answer_indices: list[int] = field(default_factory=list)
    free_text_answer: str | None = None


class TestFreeText:
    def test_trims_and_casefolds(self):
        assert normalize_free_text("  LightHouse \n") == "lighthouse"

    def test_casefold_handles_sharp_s(self):
        assert free_text_matches("STRASSE", "straße") is True

    def test_inner_whitespace_is_significant(self):
        assert free_text_matches("Light House", "lighthouse") is False

    def test_stored_answer_is_normalised_too(self):
        assert free_text_matches("lighthouse", " Lighthouse ") is True

    def test_missing_submission_is_wrong(self):
        assert free_text_matches(None, "lighthouse") is False
        assert free_text_matches("", "lighthouse") is False

    def test_missing_canonical_answer_is_wrong(self):
        assert free_text_matches("lighthouse", None) is False


class TestMultipleChoice:
    def test_member_of_correct_set(self):
        assert choice_matches(1, [1]) is True
        assert choice_matches(0, [1]) is False

    def test_multiple_accepted_indices(self):
        assert choice_matches(0, [0, 2]) is True
        assert choice_matches(2, [0, 2]) is True
        assert choice_matches(1, [0, 2]) is False

    def test_legacy_single_index_when_set_empty(self):
        assert choice_matches(3, [], legacy_index=3) is True
        assert choice_matches(2, None, legacy_index=3) is False

    def test_set_takes_precedence_over_legacy(self):
        assert choice_matches(3, [1], legacy_index=3) is False

    def test_no_answer_data_is_never_correct(self):
        assert choice_matches(0, []) is False

    def test_null_index_is_wrong(self):
        assert choice_matches(None, [1]) is False


class TestIsCorrect:
    def test_intro_always_correct(self):
        assert is_correct(Key(is_intro_location=True)) is True
        assert is_correct(Key(is_intro_location=True, correct_answer_indices=[2]), answer_index=0) is True

    def test_dispatches_on_answer_type(self):
        key = Key(answer_type="free_text", free_text_answer="anchor", correct_answer_indices=[0])
        assert is_correct(key, answer_index=0) is False
        assert is_correct(key, free_text="Anchor") is True

    def test_no_choice_rejected_outside_playtest(self):
        assert is_correct(Key(correct_answer_indices=[1]), answer_index=NO_CHOICE) is False

    def test_no_choice_unlocks_while_playtesting(self):
        assert is_correct(Key(correct_answer_indices=[1]), answer_index=NO_CHOICE, playtest_enabled=True) is True
        key = Key(answer_type="free_text", free_text_answer="anchor")
        assert is_correct(key, answer_index=NO_CHOICE, playtest_enabled=True) is True

    def test_playtest_does_not_accept_wrong_choices(self):
        assert is_correct(Key(correct_answer_indices=[1]), answer_index=0, playtest_enabled=True) is False
