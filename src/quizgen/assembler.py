"""Turn candidate object text into validated question records."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable

from quizgen.fields import (
    MISSING_INT,
    extract_array_slice,
    extract_int,
    extract_string,
    split_array_elements,
    unescape,
    unquote,
)
from quizgen.json_utils import decode_candidates, locate_response_text
from quizgen.models import MIN_OPTIONS, Difficulty, QuestionRecord

logger = logging.getLogger(__name__)

QUESTION_KEY = "question"
OPTIONS_KEY = "options"
CORRECT_INDEX_KEY = "correctIndex"
EXPLANATION_KEY = "explanation"

_PREVIEW_CHARS = 80


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) > _PREVIEW_CHARS:
        return flat[:_PREVIEW_CHARS] + "..."
    return flat


def parse_options(array_text: str) -> list[str]:
    """Split an options array slice into unquoted, unescaped option strings."""
    return [unescape(unquote(element)).strip() for element in split_array_elements(array_text)]


def assemble_record(
    candidate: str,
    difficulty: Difficulty | str,
    *,
    rng: random.Random | None = None,
) -> QuestionRecord | None:
    """Build a record from one candidate object, or None if it is unusable.

    A candidate is dropped when its question text is empty or it has fewer
    than four options. An out-of-range or missing ``correctIndex`` is
    coerced to 0.

    Args:
        candidate: Text of one ``{...}`` question object
        difficulty: Difficulty of the originating request
        rng: When given, options are shuffled with it and the correct index
            follows the correct answer to its new position
    """
    question_text = extract_string(candidate, QUESTION_KEY).strip()
    options = parse_options(extract_array_slice(candidate, OPTIONS_KEY))
    correct_index = extract_int(candidate, CORRECT_INDEX_KEY)
    explanation = extract_string(candidate, EXPLANATION_KEY).strip()

    if not question_text or len(options) < MIN_OPTIONS:
        logger.warning(
            f"Dropping invalid question: text={_preview(question_text)!r}, options={len(options)}"
        )
        return None

    if not 0 <= correct_index < len(options):
        if correct_index != MISSING_INT:
            logger.warning(f"Invalid correctIndex {correct_index} for {len(options)} options, using 0")
        else:
            logger.warning("Missing correctIndex, using 0")
        correct_index = 0

    if rng is not None:
        order = list(range(len(options)))
        rng.shuffle(order)
        correct_index = order.index(correct_index)
        options = [options[i] for i in order]

    return QuestionRecord(
        question_text=question_text,
        options=tuple(options),
        correct_option_index=correct_index,
        difficulty=Difficulty.parse(difficulty).value,
        explanation=explanation,
    )


def assemble_records(
    candidates: Iterable[str],
    difficulty: Difficulty | str,
    *,
    rng: random.Random | None = None,
) -> list[QuestionRecord]:
    """Assemble every usable candidate, preserving source order."""
    records: list[QuestionRecord] = []
    dropped = 0
    for candidate in candidates:
        record = assemble_record(candidate, difficulty, rng=rng)
        if record is None:
            dropped += 1
            continue
        records.append(record)
    if dropped:
        logger.info(f"Kept {len(records)} questions, dropped {dropped} invalid candidates")
    return records


def decode_response(
    response: str,
    difficulty: Difficulty | str,
    *,
    rng: random.Random | None = None,
) -> list[QuestionRecord]:
    """Decode a raw service response into validated question records.

    Raises:
        PayloadNotFound: If the response carries no ``text`` payload
    """
    payload = locate_response_text(response)
    logger.debug(f"Extracted payload: {_preview(payload)}")
    return assemble_records(decode_candidates(payload), difficulty, rng=rng)
