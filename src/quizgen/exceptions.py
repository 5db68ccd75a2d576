"""
Quizgen Exception Hierarchy.

All custom exceptions inherit from QuizgenError for unified error handling.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class QuizgenError(Exception):
    """Base exception for quizgen errors.

    Attributes:
        message: Human-readable error description
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self._log_error()

    def _log_error(self) -> None:
        """Log the error creation at debug level.

        Most of these errors are expected and absorbed by the acquisition
        loop, so callers log at the level that suits them.
        """
        logger.debug(
            f"{self.__class__.__name__}: {self.message}",
            extra={"error_context": self.context},
        )

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{ctx}]"
        return self.message


class ConfigError(QuizgenError):
    """Raised for configuration errors.

    Examples:
        - Missing Gemini API key
        - Malformed config file
    """


class ValidationError(QuizgenError):
    """Raised for input validation errors.

    Examples:
        - Non-positive question count
        - Empty topic
        - Unknown difficulty name
    """

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        value: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field_name:
            ctx["field"] = field_name
        if value is not None:
            ctx["value"] = repr(value)
        super().__init__(message, ctx)
        self.field_name = field_name
        self.value = value


class PayloadNotFound(QuizgenError):
    """Raised when a service response carries no locatable ``text`` payload."""


class TransportError(QuizgenError):
    """Raised when the generation service cannot be reached or answers badly.

    Attributes:
        status_code: HTTP status of the failed response (None for
            connection errors and timeouts)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message, ctx)
        self.status_code = status_code


class RateLimitError(TransportError):
    """Raised when rate limits are exceeded.

    Attributes:
        retry_after: Seconds to wait before retrying (if known)
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        status_code: int | None = 429,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if retry_after is not None:
            ctx["retry_after"] = retry_after
        super().__init__(message, status_code=status_code, context=ctx)
        self.retry_after = retry_after


class AuthenticationError(TransportError):
    """Raised when the service rejects the API key."""
