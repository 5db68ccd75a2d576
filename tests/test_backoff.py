"""Tests for quizgen.backoff."""

from __future__ import annotations

import pytest

from quizgen.backoff import BackoffStrategy, ErrorCategory, categorize_error
from quizgen.exceptions import (
    AuthenticationError,
    PayloadNotFound,
    RateLimitError,
    TransportError,
)


class TestBackoffStrategy:
    """Tests for BackoffStrategy.compute_delay."""

    def test_defaults(self):
        strategy = BackoffStrategy()
        assert strategy.max_attempts == 3
        assert strategy.compute_delay(partial=True) == 1.0
        assert strategy.compute_delay(partial=False) == 2.0

    def test_retry_after_only_extends(self):
        strategy = BackoffStrategy()
        assert strategy.compute_delay(False, RateLimitError("429", retry_after=0.5)) == 2.0
        assert strategy.compute_delay(False, RateLimitError("429", retry_after=10)) == 10

    def test_other_errors_ignored(self):
        assert BackoffStrategy().compute_delay(False, TransportError("boom")) == 2.0

    def test_never_negative(self):
        assert BackoffStrategy(shortfall_delay=-1.0).compute_delay(True) == 0.0


class TestCategorizeError:
    """Tests for categorize_error."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (RateLimitError("slow down"), ErrorCategory.RATE_LIMIT),
            (AuthenticationError("bad key", status_code=403), ErrorCategory.AUTH),
            (PayloadNotFound("no text"), ErrorCategory.PAYLOAD),
            (TransportError("x", status_code=500), ErrorCategory.SERVER),
            (TransportError("x", status_code=404), ErrorCategory.CLIENT),
            (TransportError("x", status_code=429), ErrorCategory.RATE_LIMIT),
            (TransportError("Request timed out"), ErrorCategory.NETWORK),
            (ConnectionRefusedError("refused"), ErrorCategory.NETWORK),
            (RuntimeError("HTTP 503 service unavailable"), ErrorCategory.SERVER),
            (RuntimeError("RESOURCE_EXHAUSTED: quota"), ErrorCategory.RATE_LIMIT),
            (RuntimeError("API key not valid"), ErrorCategory.AUTH),
            (ValueError("something odd at line 500"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categories(self, error, expected):
        assert categorize_error(error) is expected
