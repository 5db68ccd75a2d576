"""Tests for request, record and result types."""

from __future__ import annotations

import dataclasses

import pytest

from quizgen.exceptions import ValidationError
from quizgen.fallback import build_fallback_questions
from quizgen.models import (
    AcquisitionResult,
    AcquisitionState,
    Difficulty,
    GenerationRequest,
    QuestionRecord,
    QuestionType,
    RecordOrigin,
)


def make_record(**overrides) -> QuestionRecord:
    values = {
        "question_text": "Q?",
        "options": ["a", "b", "c", "d"],
        "correct_option_index": 2,
        "difficulty": "Easy",
        "explanation": "because",
    }
    values.update(overrides)
    return QuestionRecord(**values)


class TestDifficulty:
    """Tests for Difficulty.parse."""

    @pytest.mark.parametrize("value", ["easy", "EASY", " Easy "])
    def test_case_insensitive(self, value):
        assert Difficulty.parse(value) is Difficulty.EASY

    def test_passthrough(self):
        assert Difficulty.parse(Difficulty.HARD) is Difficulty.HARD

    def test_unknown(self):
        with pytest.raises(ValidationError, match="Unknown difficulty"):
            Difficulty.parse("extreme")


class TestGenerationRequest:
    """Tests for GenerationRequest validation."""

    def test_difficulty_string_is_parsed(self):
        request = GenerationRequest("Biology", "hard", 3)
        assert request.difficulty is Difficulty.HARD

    def test_rejects_zero_count(self):
        with pytest.raises(ValidationError) as exc:
            GenerationRequest("Biology", Difficulty.EASY, 0)
        assert exc.value.field_name == "desired_count"

    def test_rejects_bool_count(self):
        with pytest.raises(ValidationError):
            GenerationRequest("Biology", Difficulty.EASY, True)

    def test_rejects_empty_topic(self):
        with pytest.raises(ValidationError):
            GenerationRequest("   ", Difficulty.EASY, 1)

    def test_is_immutable(self):
        request = GenerationRequest("Biology", Difficulty.EASY, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.desired_count = 4

    def test_with_count(self):
        request = GenerationRequest("Biology", Difficulty.EASY, 5)
        smaller = request.with_count(2)
        assert smaller.desired_count == 2
        assert smaller.topic == "Biology"
        assert request.desired_count == 5


class TestQuestionRecord:
    """Tests for QuestionRecord invariants and helpers."""

    def test_helpers(self):
        record = make_record()
        assert record.options == ("a", "b", "c", "d")
        assert record.correct_answer == "c"
        assert record.is_correct(2)
        assert not record.is_correct(0)
        assert record.question_type is QuestionType.MULTIPLE_CHOICE
        assert not record.is_fallback

    def test_to_dict(self):
        data = make_record().to_dict()
        assert data["question"] == "Q?"
        assert data["options"] == ["a", "b", "c", "d"]
        assert data["correctIndex"] == 2
        assert data["origin"] == "generated"

    def test_too_few_options(self):
        with pytest.raises(ValidationError):
            make_record(options=["a", "b", "c"])

    def test_index_out_of_range(self):
        with pytest.raises(ValidationError):
            make_record(correct_option_index=4)

    def test_empty_question(self):
        with pytest.raises(ValidationError):
            make_record(question_text="")

    def test_is_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            make_record().correct_option_index = 0


class TestFallbackQuestions:
    """Tests for build_fallback_questions."""

    def test_capped_at_five(self):
        records = build_fallback_questions("History", Difficulty.MEDIUM, 12)
        assert len(records) == 5
        assert records[0].question_text == "Sample question 1 for History (Medium)"

    def test_fewer_than_limit(self):
        assert len(build_fallback_questions("History", "easy", 2)) == 2

    def test_at_least_one(self):
        assert len(build_fallback_questions("History", "easy", 0)) == 1

    def test_marked_as_placeholders(self):
        for record in build_fallback_questions("History", "hard", 3):
            assert record.origin is RecordOrigin.FALLBACK
            assert "not AI-generated" in record.explanation
            assert record.correct_option_index == 0

    def test_deterministic(self):
        assert build_fallback_questions("X", "easy", 3) == build_fallback_questions("X", "easy", 3)


class TestAcquisitionResult:
    """Tests for AcquisitionResult."""

    def test_iteration_and_length(self):
        records = (make_record(), make_record(question_text="Q2?"))
        result = AcquisitionResult(records=records, state=AcquisitionState.DONE)
        assert len(result) == 2
        assert [r.question_text for r in result] == ["Q?", "Q2?"]
        assert result.target_met

    def test_exhausted_not_met(self):
        result = AcquisitionResult(records=(), state=AcquisitionState.EXHAUSTED, fallback_used=True)
        assert not result.target_met
