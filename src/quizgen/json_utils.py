"""Utilities for robustly extracting question objects from Gemini responses."""

from __future__ import annotations

import logging
import re

from quizgen.exceptions import PayloadNotFound
from quizgen.fields import find_key, unescape
from quizgen.scanning import QUOTE, find_closing_quote, find_matching_bracket

logger = logging.getLogger(__name__)

PAYLOAD_KEY = "text"

# Leading fence with an optional language tag, and the trailing fence
_RE_OPENING_FENCE = re.compile(r"^\s*```[\w+-]*[ \t]*\n?")
_RE_CLOSING_FENCE = re.compile(r"\s*```\s*$")


def locate_response_text(response: str) -> str:
    """Return the unescaped value of the first ``"text"`` field.

    The service wraps the model output in an envelope such as
    ``{"candidates": [{"content": {"parts": [{"text": "..."}]}}]}``; only
    the first ``text`` value is used.

    Raises:
        PayloadNotFound: If the key, its colon, or a terminated string value
            cannot be found
    """
    value_start = find_key(response, PAYLOAD_KEY)
    if value_start is None:
        raise PayloadNotFound(
            "No text field in service response",
            context={"response_length": len(response)},
        )
    open_quote = response.find(QUOTE, value_start)
    if open_quote == -1:
        raise PayloadNotFound("Text field has no string value")
    close_quote = find_closing_quote(response, open_quote + 1)
    if close_quote is None:
        raise PayloadNotFound(
            "Text field value is not terminated",
            context={"response_length": len(response)},
        )
    return unescape(response[open_quote + 1:close_quote])


def strip_code_fences(text: str) -> str:
    """Remove a leading and a trailing Markdown code fence.

    Backticks anywhere else, such as inline code in a question, are kept.
    """
    text = _RE_OPENING_FENCE.sub("", text, count=1)
    return _RE_CLOSING_FENCE.sub("", text, count=1).strip()


def isolate_array(text: str) -> str:
    """Slice ``text`` to the span from the first ``[`` to the last ``]``.

    Text without a ``[ ... ]`` pair in that order is returned unchanged.
    When the first ``[`` is never structurally closed (truncated output),
    the slice runs to the end of the text so the complete leading objects
    are kept.
    """
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end < start:
        return text
    if find_matching_bracket(text, start) is None:
        return text[start:]
    return text[start:end + 1]


def strip_outer_brackets(text: str) -> str:
    """Remove one leading ``[`` and one trailing ``]`` if present."""
    if text.startswith("["):
        text = text[1:]
    if text.endswith("]"):
        text = text[:-1]
    return text


def split_objects(text: str) -> list[str]:
    """Split array content into its depth-0 ``{...}`` substrings.

    Braces inside string literals are ignored. Separators between objects
    and an unterminated trailing object are discarded.
    """
    objects: list[str] = []
    depth = 0
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == QUOTE:
                in_string = False
            continue
        if ch == QUOTE:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                objects.append(text[start:i + 1])
    return objects


def decode_candidates(payload: str) -> list[str]:
    """Turn a located payload into candidate question-object substrings.

    Handles: markdown code fences, commentary around the array, and
    truncated output (complete leading objects are kept).
    """
    text = strip_code_fences(payload)
    text = isolate_array(text)
    text = strip_outer_brackets(text.strip())
    candidates = split_objects(text)
    logger.debug(f"Decoded {len(candidates)} candidate objects from payload (length={len(payload)})")
    return candidates
