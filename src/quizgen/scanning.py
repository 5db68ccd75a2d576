"""Escape-aware scanning primitives over raw model output.

These functions work on string offsets and report absence with ``None``
instead of raising, so callers can treat truncated or malformed text as a
normal outcome.
"""

from __future__ import annotations

from collections.abc import Iterator

QUOTE = '"'
BACKSLASH = "\\"

_CLOSERS = {"{": "}", "[": "]"}


def is_escaped(text: str, index: int) -> bool:
    """Return True if ``text[index]`` is preceded by an odd run of backslashes."""
    run = 0
    i = index - 1
    while i >= 0 and text[i] == BACKSLASH:
        run += 1
        i -= 1
    return run % 2 == 1


def find_closing_quote(text: str, start: int) -> int | None:
    """Find the quote that terminates a string literal.

    Args:
        text: Text to scan
        start: Index of the first character inside the literal (one past
            the opening quote)

    Returns:
        Index of the terminating quote, or None if the text ends first
    """
    escaped = False
    for i in range(max(start, 0), len(text)):
        ch = text[i]
        if escaped:
            escaped = False
        elif ch == BACKSLASH:
            escaped = True
        elif ch == QUOTE:
            return i
    return None


def iter_string_spans(text: str, start: int = 0) -> Iterator[tuple[int, int]]:
    """Yield ``(open, close)`` quote indices of each complete string literal.

    Scanning stops at the first unterminated literal.
    """
    pos = start
    while True:
        open_index = text.find(QUOTE, pos)
        if open_index == -1:
            return
        close_index = find_closing_quote(text, open_index + 1)
        if close_index is None:
            return
        yield open_index, close_index
        pos = close_index + 1


def find_matching_bracket(text: str, open_index: int) -> int | None:
    """Find the bracket that structurally closes ``text[open_index]``.

    Brackets inside string literals do not change depth.

    Args:
        text: Text to scan
        open_index: Index of an opening ``{`` or ``[``

    Returns:
        Index of the matching closer, or None for unbalanced input or when
        ``open_index`` does not point at an opening bracket
    """
    if open_index < 0 or open_index >= len(text):
        return None
    opener = text[open_index]
    closer = _CLOSERS.get(opener)
    if closer is None:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(open_index, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == BACKSLASH:
                escaped = True
            elif ch == QUOTE:
                in_string = False
            continue
        if ch == QUOTE:
            in_string = True
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
    return None
