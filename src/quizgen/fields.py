"""Lenient key/value extraction from JSON-like text.

Nothing here raises on malformed input: a missing key or a value of the
wrong shape comes back as an empty string, ``"[]"`` or ``MISSING_INT``.
"""

from __future__ import annotations

import re
import sys

from quizgen.scanning import (
    BACKSLASH,
    QUOTE,
    find_closing_quote,
    find_matching_bracket,
    is_escaped,
    iter_string_spans,
)

# Returned by extract_int when no digits follow the key.
MISSING_INT = -1

EMPTY_ARRAY = "[]"

_DIGITS = "0123456789"

# Longer digit runs are never a valid index
_MAX_INT_DIGITS = len(str(sys.maxsize))

_REPLACEMENT_CHAR = "\ufffd"

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "/": "/",
    '"': '"',
    "\\": "\\",
}

_RE_ESCAPE = re.compile(
    r"\\(u[dD][89abAB][0-9a-fA-F]{2}\\u[dD][c-fC-F][0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)",
    re.DOTALL,
)


def _replace_escape(match: re.Match[str]) -> str:
    token = match.group(1)
    if len(token) == 11:
        # UTF-16 surrogate pair
        high = int(token[1:5], 16)
        low = int(token[7:11], 16)
        return chr(0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00))
    if len(token) == 5 and token[0] == "u":
        code = int(token[1:], 16)
        if 0xD800 <= code <= 0xDFFF:
            # Unpaired surrogate
            return _REPLACEMENT_CHAR
        return chr(code)
    return _ESCAPES.get(token, match.group(0))


def unescape(text: str) -> str:
    """Unescape JSON string escapes in a single left-to-right pass.

    ``\\\\\\"`` becomes a backslash followed by a quote. Unknown escapes are
    kept verbatim.
    """
    if BACKSLASH not in text:
        return text
    return _RE_ESCAPE.sub(_replace_escape, text)


def unquote(text: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    if len(text) >= 2 and text.startswith(QUOTE) and text.endswith(QUOTE):
        return text[1:-1]
    return text


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def find_key(text: str, key: str) -> int | None:
    """Return the index just past the colon that follows ``"key"``.

    Only string literals followed by a colon count as keys, so a value that
    happens to contain the key name is never matched.
    """
    for open_index, close_index in iter_string_spans(text):
        if text[open_index + 1:close_index] != key:
            continue
        colon = _skip_whitespace(text, close_index + 1)
        if colon < len(text) and text[colon] == ":":
            return colon + 1
    return None


def extract_string(text: str, key: str) -> str:
    """Extract the unescaped string value stored under ``key``."""
    value_start = find_key(text, key)
    if value_start is None:
        return ""
    quote = _skip_whitespace(text, value_start)
    if quote >= len(text) or text[quote] != QUOTE:
        return ""
    end = find_closing_quote(text, quote + 1)
    if end is None:
        return ""
    return unescape(text[quote + 1:end])


def extract_array_slice(text: str, key: str) -> str:
    """Extract the raw ``[...]`` text stored under ``key``."""
    value_start = find_key(text, key)
    if value_start is None:
        return EMPTY_ARRAY
    bracket = _skip_whitespace(text, value_start)
    if bracket >= len(text) or text[bracket] != "[":
        return EMPTY_ARRAY
    end = find_matching_bracket(text, bracket)
    if end is None:
        return EMPTY_ARRAY
    return text[bracket:end + 1]


def extract_int(text: str, key: str) -> int:
    """Extract the first integer following ``key``.

    Non-digit characters (quotes, whitespace, ``null``) are skipped up to the
    end of the value, so ``"2"`` and ``2`` both parse. Returns
    ``MISSING_INT`` when the value holds no digits.
    """
    value_start = find_key(text, key)
    if value_start is None:
        return MISSING_INT

    i = value_start
    in_string = False
    while i < len(text):
        ch = text[i]
        if ch in _DIGITS:
            break
        if ch == QUOTE and not (in_string and is_escaped(text, i)):
            in_string = not in_string
        elif not in_string and ch in ",}]":
            return MISSING_INT
        i += 1
    else:
        return MISSING_INT

    end = i
    while end < len(text) and text[end] in _DIGITS:
        end += 1
    if end - i > _MAX_INT_DIGITS:
        return MISSING_INT
    value = int(text[i:end])
    if i > 0 and text[i - 1] == "-":
        value = -value
    return value


def split_array_elements(array_text: str) -> list[str]:
    """Split a ``[...]`` slice into its top-level element texts.

    Commas inside string literals or nested brackets do not split. Empty
    elements (from trailing commas) are dropped.
    """
    body = array_text.strip()
    if body.startswith("["):
        body = body[1:]
    if body.endswith("]"):
        body = body[:-1]

    elements: list[str] = []
    depth = 0
    start = 0
    in_string = False
    escaped = False
    for i, ch in enumerate(body):
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
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
        elif ch == "," and depth == 0:
            elements.append(body[start:i].strip())
            start = i + 1
    elements.append(body[start:].strip())
    return [element for element in elements if element]
