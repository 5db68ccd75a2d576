"""Placeholder questions used when the generation service cannot deliver."""

from __future__ import annotations

from quizgen.models import Difficulty, QuestionRecord, RecordOrigin

FALLBACK_LIMIT = 5
FALLBACK_OPTIONS = ("Option A", "Option B", "Option C", "Option D")
FALLBACK_EXPLANATION = (
    "This is a placeholder question, not AI-generated, and has no verified answer. "
    "Configure a Gemini API key to get real questions."
)


def build_fallback_questions(
    topic: str,
    difficulty: Difficulty | str,
    count: int,
    *,
    limit: int = FALLBACK_LIMIT,
) -> list[QuestionRecord]:
    """Build between 1 and ``limit`` deterministic placeholder records."""
    level = Difficulty.parse(difficulty).value
    total = max(1, min(count, limit))
    return [
        QuestionRecord(
            question_text=f"Sample question {i + 1} for {topic} ({level})",
            options=FALLBACK_OPTIONS,
            correct_option_index=0,
            difficulty=level,
            explanation=FALLBACK_EXPLANATION,
            origin=RecordOrigin.FALLBACK,
        )
        for i in range(total)
    ]
