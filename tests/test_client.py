"""Tests for the Gemini HTTP client."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from quizgen.client import GeminiClient, build_prompt
from quizgen.config import API_KEY_PLACEHOLDER, QuizgenConfig
from quizgen.exceptions import (
    AuthenticationError,
    ConfigError,
    RateLimitError,
    TransportError,
)
from quizgen.models import Difficulty, GenerationRequest


def run(coro):
    return asyncio.run(coro)


REQUEST = GenerationRequest("Chemistry", Difficulty.HARD, 4)
BODY = json.dumps({"candidates": [{"content": {"parts": [{"text": "[]"}]}}]})


def make_client(handler, **config_overrides) -> GeminiClient:
    values = {"api_key": "test-key", "model": "gemini-test"}
    values.update(config_overrides)
    return GeminiClient(QuizgenConfig(**values), transport=httpx.MockTransport(handler))


async def generate_once(client: GeminiClient) -> str:
    async with client:
        return await client.generate(REQUEST)


class TestBuildPrompt:
    """Tests for build_prompt."""

    def test_mentions_count_topic_and_level(self):
        prompt = build_prompt(REQUEST)
        assert "Generate 4 quiz questions about Chemistry (Hard level)" in prompt
        assert "Hard: Advanced topics" in prompt
        assert '"correctIndex": 0' in prompt

    def test_guideline_follows_difficulty(self):
        prompt = build_prompt(GenerationRequest("Chemistry", Difficulty.EASY, 1))
        assert "Easy: Basic concepts" in prompt
        assert "Hard:" not in prompt


class TestGeminiClient:
    """Tests for GeminiClient against a mock transport."""

    def test_success_returns_raw_body(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=BODY)

        assert run(generate_once(make_client(handler))) == BODY

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url).endswith("/gemini-test:generateContent")
        assert request.headers["x-goog-api-key"] == "test-key"
        sent = json.loads(request.content)
        assert "Chemistry" in sent["contents"][0]["parts"][0]["text"]

    def test_rate_limit_with_retry_after(self):
        client = make_client(
            lambda request: httpx.Response(429, headers={"Retry-After": "12"}, text="quota")
        )
        with pytest.raises(RateLimitError) as exc:
            run(generate_once(client))
        assert exc.value.retry_after == 12.0
        assert exc.value.status_code == 429

    def test_rate_limit_without_retry_after(self):
        client = make_client(lambda request: httpx.Response(429, text="quota"))
        with pytest.raises(RateLimitError) as exc:
            run(generate_once(client))
        assert exc.value.retry_after is None

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures(self, status):
        client = make_client(lambda request: httpx.Response(status, text="API key not valid"))
        with pytest.raises(AuthenticationError) as exc:
            run(generate_once(client))
        assert exc.value.status_code == status

    def test_server_error_message_is_truncated(self):
        client = make_client(lambda request: httpx.Response(500, text="x" * 1000))
        with pytest.raises(TransportError) as exc:
            run(generate_once(client))
        assert exc.value.status_code == 500
        assert exc.value.message == "API Error 500: " + "x" * 300

    def test_timeout_becomes_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(TransportError, match="timed out"):
            run(generate_once(make_client(handler)))

    def test_connection_error_becomes_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportError, match="Connection failed"):
            run(generate_once(make_client(handler)))

    @pytest.mark.parametrize("key", [None, API_KEY_PLACEHOLDER])
    def test_missing_key(self, key):
        client = make_client(lambda request: httpx.Response(200, text=BODY), api_key=key)
        with pytest.raises(ConfigError):
            run(client.generate(REQUEST))

    def test_aclose_is_idempotent(self):
        client = make_client(lambda request: httpx.Response(200, text=BODY))

        async def scenario():
            await client.generate(REQUEST)
            await client.aclose()
            await client.aclose()

        run(scenario())
        assert client._client is None

    def test_build_payload(self):
        assert GeminiClient.build_payload("hi") == {"contents": [{"parts": [{"text": "hi"}]}]}
