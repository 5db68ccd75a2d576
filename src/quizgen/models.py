"""Request, record and result types for question acquisition."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from quizgen.backoff import ErrorCategory
from quizgen.exceptions import ValidationError

MIN_OPTIONS = 4


class Difficulty(str, Enum):
    """Difficulty levels the generation prompt understands."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def parse(cls, value: str | Difficulty) -> Difficulty:
        """Parse a difficulty name in any letter case."""
        if isinstance(value, Difficulty):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValidationError(
            f"Unknown difficulty '{value}'. Valid: {valid}",
            field_name="difficulty",
            value=value,
        )


class QuestionType(str, Enum):
    """Question formats."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    FILL_IN_BLANK = "fill_in_blank"
    MATCHING = "matching"


class RecordOrigin(str, Enum):
    """Where a question record came from."""

    GENERATED = "generated"
    FALLBACK = "fallback"


class AcquisitionState(str, Enum):
    """States of one acquisition run."""

    IDLE = "idle"
    REQUESTING = "requesting"
    SUFFICIENT = "sufficient"
    SHORTFALL = "shortfall"
    FAILED = "failed"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"
    DONE = "done"


@dataclass(frozen=True)
class GenerationRequest:
    """What to generate: topic, difficulty and how many questions."""

    topic: str
    difficulty: Difficulty
    desired_count: int

    def __post_init__(self) -> None:
        if not self.topic or not self.topic.strip():
            raise ValidationError("Topic must not be empty", field_name="topic", value=self.topic)
        if isinstance(self.desired_count, bool) or self.desired_count <= 0:
            raise ValidationError(
                "Question count must be a positive integer",
                field_name="desired_count",
                value=self.desired_count,
            )
        object.__setattr__(self, "difficulty", Difficulty.parse(self.difficulty))

    def with_count(self, count: int) -> GenerationRequest:
        """Return a copy of this request asking for ``count`` questions."""
        return replace(self, desired_count=count)


@dataclass(frozen=True)
class QuestionRecord:
    """A validated multiple-choice question."""

    question_text: str
    options: tuple[str, ...]
    correct_option_index: int
    difficulty: str
    explanation: str = ""
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    origin: RecordOrigin = RecordOrigin.GENERATED

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        if not self.question_text.strip():
            raise ValidationError("Question text must not be empty", field_name="question_text")
        if len(self.options) < MIN_OPTIONS:
            raise ValidationError(
                f"A question needs at least {MIN_OPTIONS} options",
                field_name="options",
                value=len(self.options),
            )
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValidationError(
                "Correct option index out of range",
                field_name="correct_option_index",
                value=self.correct_option_index,
            )

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_option_index]

    @property
    def is_fallback(self) -> bool:
        return self.origin is RecordOrigin.FALLBACK

    def is_correct(self, selected_index: int) -> bool:
        return selected_index == self.correct_option_index

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question_text,
            "options": list(self.options),
            "correctIndex": self.correct_option_index,
            "difficulty": self.difficulty,
            "explanation": self.explanation,
            "type": self.question_type.value,
            "origin": self.origin.value,
        }


@dataclass
class AttemptOutcome:
    """What happened during one generation attempt."""

    attempt: int
    requested: int
    yielded: int = 0
    state: AcquisitionState = AcquisitionState.FAILED
    error: str | None = None
    error_category: ErrorCategory | None = None
    delay: float = 0.0


@dataclass(frozen=True)
class AcquisitionResult:
    """Records gathered for one request, plus how they were obtained."""

    records: tuple[QuestionRecord, ...]
    state: AcquisitionState
    fallback_used: bool = False
    attempts: tuple[AttemptOutcome, ...] = field(default_factory=tuple)

    @property
    def target_met(self) -> bool:
        return self.state is AcquisitionState.DONE

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[QuestionRecord]:
        return iter(self.records)
