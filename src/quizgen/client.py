"""Gemini generateContent client that returns raw response text."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from quizgen.config import QuizgenConfig
from quizgen.exceptions import (
    AuthenticationError,
    ConfigError,
    RateLimitError,
    TransportError,
)
from quizgen.models import Difficulty, GenerationRequest

logger = logging.getLogger(__name__)

_DIFFICULTY_GUIDELINES = {
    Difficulty.EASY: "Easy: Basic concepts and definitions.",
    Difficulty.MEDIUM: "Medium: Applied knowledge and problem-solving.",
    Difficulty.HARD: "Hard: Advanced topics and complex scenarios.",
}

_RESPONSE_SHAPE = """[
  {
    "question": "Question text?",
    "options": ["A", "B", "C", "D"],
    "correctIndex": 0,
    "explanation": "Why this is correct"
  }
]"""

_ERROR_BODY_CHARS = 300


def build_prompt(request: GenerationRequest) -> str:
    """Build the generation prompt for a request."""
    return (
        f"Generate {request.desired_count} quiz questions about {request.topic} "
        f"({request.difficulty.value} level).\n\n"
        f"Return ONLY valid JSON array with this exact format:\n"
        f"{_RESPONSE_SHAPE}\n\n"
        f"{_DIFFICULTY_GUIDELINES[request.difficulty]}\n"
        f"\nReturn only the JSON array, no markdown, no extra text."
    )


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class GeminiClient:
    """Async client for the Gemini ``generateContent`` endpoint.

    Satisfies the QuestionSource protocol: ``generate`` returns the raw
    response body and raises TransportError on any failure.
    """

    def __init__(
        self,
        config: QuizgenConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if not self.config.is_api_key_configured:
            raise ConfigError(
                "Gemini API key not configured",
                context={"hint": "set GEMINI_API_KEY or run 'quizgen init --api-key KEY'"},
            )
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.config.read_timeout, connect=self.config.connect_timeout
                ),
                headers={
                    "x-goog-api-key": self.config.api_key or "",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def build_payload(prompt: str) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    async def generate(self, request: GenerationRequest) -> str:
        """Send the prompt for ``request`` and return the raw response text.

        Raises:
            ConfigError: If no API key is configured
            RateLimitError: On HTTP 429
            AuthenticationError: On HTTP 401/403
            TransportError: On any other non-200 status, timeout or
                connection failure
        """
        client = self._get_client()
        payload = self.build_payload(build_prompt(request))
        try:
            response = await client.post(self.config.endpoint, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Connection failed: {e}") from e

        if response.status_code != 200:
            body = response.text[:_ERROR_BODY_CHARS]
            message = f"API Error {response.status_code}: {body}"
            if response.status_code == 429:
                raise RateLimitError(message, retry_after=_retry_after(response))
            if response.status_code in (401, 403):
                raise AuthenticationError(message, status_code=response.status_code)
            raise TransportError(message, status_code=response.status_code)

        logger.debug(f"Gemini response: {len(response.text)} chars")
        return response.text

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GeminiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
