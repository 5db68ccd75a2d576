"""
Acquisition Backoff - fixed-delay retry policy for question generation.

Provides the shortfall/failure delays used between generation attempts and
a categorizer that labels attempt errors for logging and reporting.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from quizgen.exceptions import (
    AuthenticationError,
    PayloadNotFound,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Categories of attempt errors."""

    RATE_LIMIT = "rate_limit"  # 429 / rate limit errors
    NETWORK = "network"  # Connection errors, timeouts
    SERVER = "server"  # 5xx server errors
    AUTH = "auth"  # Rejected API key
    CLIENT = "client"  # Other 4xx errors
    PAYLOAD = "payload"  # Response carried nothing decodable
    UNKNOWN = "unknown"  # Unclassified errors


@dataclass(frozen=True)
class BackoffStrategy:
    """Retry policy for one acquisition."""

    max_attempts: int = 3  # Total generation calls per acquisition
    shortfall_delay: float = 1.0  # After an attempt that yielded some records
    failure_delay: float = 2.0  # After an attempt that yielded nothing

    def compute_delay(self, partial: bool, error: Exception | None = None) -> float:
        """Compute the wait before the next attempt.

        Args:
            partial: Whether the last attempt yielded at least one record
            error: The error raised by the last attempt, if any

        Returns:
            Delay in seconds before the next attempt
        """
        delay = self.shortfall_delay if partial else self.failure_delay
        if isinstance(error, RateLimitError) and error.retry_after:
            delay = max(delay, error.retry_after)
            logger.info(f"Rate limit: waiting {error.retry_after}s (retry-after header)")
        return max(0.0, delay)


# Context-aware patterns so "line 500" does not read as a server error
_RE_RATE_LIMIT = re.compile(
    r"\brate\s*limit|(?:^|http\s*|status\s*|code\s*|error\s*)429\b|too many requests|resource.exhausted",
    re.IGNORECASE,
)
_RE_NETWORK = re.compile(r"\b(connection|timeout|timed out|network|refused|socket)\b", re.IGNORECASE)
_RE_AUTH = re.compile(
    r"(?:^|http\s*|status\s*|code\s*|error\s*)(401|403)\b|\bunauthorized\b|\bforbidden\b|api.key",
    re.IGNORECASE,
)
_RE_SERVER = re.compile(
    r"(?:^|http\s*|status\s*|code\s*|error\s*)(5\d{2})\b|internal server|service unavailable|bad gateway",
    re.IGNORECASE,
)

_NETWORK_TYPES = frozenset(["connect", "timeout", "network", "socket"])


def _categorize_status(status_code: int) -> ErrorCategory:
    if status_code == 429:
        return ErrorCategory.RATE_LIMIT
    if status_code in (401, 403):
        return ErrorCategory.AUTH
    if status_code >= 500:
        return ErrorCategory.SERVER
    if status_code >= 400:
        return ErrorCategory.CLIENT
    return ErrorCategory.UNKNOWN


def categorize_error(error: Exception) -> ErrorCategory:
    """Categorize an attempt error.

    Checks the exception type first, then the HTTP status carried by a
    TransportError, then the message.

    Args:
        error: The exception to categorize

    Returns:
        The error category
    """
    if isinstance(error, RateLimitError):
        return ErrorCategory.RATE_LIMIT
    if isinstance(error, AuthenticationError):
        return ErrorCategory.AUTH
    if isinstance(error, PayloadNotFound):
        return ErrorCategory.PAYLOAD
    if isinstance(error, TransportError) and error.status_code is not None:
        return _categorize_status(error.status_code)

    error_type = type(error).__name__.lower()
    error_msg = str(error).lower()

    if any(x in error_type for x in _NETWORK_TYPES):
        return ErrorCategory.NETWORK
    if _RE_RATE_LIMIT.search(error_msg):
        return ErrorCategory.RATE_LIMIT
    if _RE_NETWORK.search(error_msg):
        return ErrorCategory.NETWORK
    if _RE_AUTH.search(error_msg):
        return ErrorCategory.AUTH
    if _RE_SERVER.search(error_msg):
        return ErrorCategory.SERVER
    return ErrorCategory.UNKNOWN
