"""Question bank: fresh AI questions per domain with a session cache."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from functools import partial

from quizgen.acquisition import AcquisitionController, QuestionSource
from quizgen.assembler import decode_response
from quizgen.backoff import BackoffStrategy
from quizgen.client import GeminiClient
from quizgen.config import QuizgenConfig
from quizgen.fallback import build_fallback_questions
from quizgen.models import (
    AcquisitionResult,
    AcquisitionState,
    Difficulty,
    GenerationRequest,
    QuestionRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_DOMAINS = (
    "Java Programming",
    "Python Programming",
    "Data Structures",
    "Algorithms",
    "Database Systems",
    "Web Development",
    "Mathematics",
    "Physics",
    "Chemistry",
    "Biology",
    "History",
    "Geography",
    "General Knowledge",
    "English Literature",
    "Computer Networks",
    "Operating Systems",
    "Artificial Intelligence",
    "Machine Learning",
    "Cybersecurity",
    "Cloud Computing",
)

ControllerFactory = Callable[[QuestionSource, BackoffStrategy], AcquisitionController]


def _cache_key(domain: str, difficulty: Difficulty) -> str:
    return f"{domain}_{difficulty.value}"


class QuestionBank:
    """Generates every quiz fresh from Gemini, caching results per session."""

    def __init__(
        self,
        config: QuizgenConfig,
        *,
        source: QuestionSource | None = None,
        controller_factory: ControllerFactory | None = None,
    ) -> None:
        self.config = config
        self.source = source
        if self.source is None and config.is_api_key_configured:
            self.source = GeminiClient(config)
        elif self.source is None:
            logger.warning("Gemini API key not configured; only placeholder questions are available")
        self._controller_factory = controller_factory or self._make_controller
        self._cache: dict[str, list[QuestionRecord]] = {}

    def _decoder(self) -> Callable[[str, Difficulty], list[QuestionRecord]]:
        if self.config.shuffle_options:
            return partial(decode_response, rng=random.Random())
        return decode_response

    def _make_controller(self, source: QuestionSource, strategy: BackoffStrategy) -> AcquisitionController:
        return AcquisitionController(
            source,
            strategy=strategy,
            decoder=self._decoder(),
            fallback=partial(build_fallback_questions, limit=self.config.retry.fallback_limit),
        )

    @property
    def is_configured(self) -> bool:
        return self.source is not None

    def available_domains(self) -> list[str]:
        return list(DEFAULT_DOMAINS)

    async def get_questions(
        self, domain: str, difficulty: Difficulty | str, count: int
    ) -> AcquisitionResult:
        """Generate ``count`` fresh questions for a domain.

        Falls back to placeholder questions without calling the service when
        no API key is configured.
        """
        request = GenerationRequest(domain, Difficulty.parse(difficulty), count)
        logger.info(f"Generating {count} fresh questions: {domain} | {request.difficulty.value}")

        if self.source is None:
            return AcquisitionResult(
                records=tuple(
                    build_fallback_questions(
                        domain, request.difficulty, count, limit=self.config.retry.fallback_limit
                    )
                ),
                state=AcquisitionState.EXHAUSTED,
                fallback_used=True,
            )

        controller = self._controller_factory(self.source, self.config.retry.to_strategy())
        result = await controller.acquire(request)
        if not result.fallback_used and self.config.cache_questions:
            self._cache[_cache_key(domain, request.difficulty)] = list(result.records)
        return result

    async def pregenerate(self, domain: str, difficulty: Difficulty | str, count: int) -> int:
        """Generate questions into the cache; returns how many were cached."""
        result = await self.get_questions(domain, difficulty, count)
        if result.fallback_used:
            logger.warning(f"No questions generated for {domain} ({difficulty})")
            return 0
        return len(result)

    async def test_connection(self) -> bool:
        """Ask for one easy question in a single attempt."""
        if self.source is None:
            return False
        strategy = BackoffStrategy(max_attempts=1)
        controller = self._controller_factory(self.source, strategy)
        result = await controller.acquire(
            GenerationRequest("General Knowledge", Difficulty.EASY, 1)
        )
        return not result.fallback_used and len(result) > 0

    async def reconfigure(self, api_key: str) -> None:
        """Switch to a new API key, closing the current client first.

        The bank talks to Gemini afterwards; with an empty or placeholder
        key it has no source and serves placeholder questions.
        """
        await self.aclose()
        self.config = self.config.model_copy(update={"api_key": api_key})
        if self.config.is_api_key_configured:
            self.source = GeminiClient(self.config)
            logger.info("Gemini client reinitialized")
        else:
            self.source = None
            logger.warning("Gemini API key not configured; only placeholder questions are available")

    def cached(self, domain: str, difficulty: Difficulty | str) -> list[QuestionRecord]:
        return list(self._cache.get(_cache_key(domain, Difficulty.parse(difficulty)), []))

    def generation_stats(self) -> dict[str, int]:
        return {key: len(records) for key, records in self._cache.items()}

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Session cache cleared")

    async def aclose(self) -> None:
        if isinstance(self.source, GeminiClient):
            await self.source.aclose()
