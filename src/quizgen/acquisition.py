"""
Acquisition Controller - gather a requested number of valid questions.

Drives one or more generation calls, accumulates validated records across
attempts, retries with backoff on shortfall or failure, and substitutes
placeholder questions when the service cannot deliver.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from quizgen.assembler import decode_response
from quizgen.backoff import BackoffStrategy, categorize_error
from quizgen.fallback import FALLBACK_LIMIT, build_fallback_questions
from quizgen.models import (
    AcquisitionResult,
    AcquisitionState,
    AttemptOutcome,
    Difficulty,
    GenerationRequest,
    QuestionRecord,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[str, Difficulty], list[QuestionRecord]]
FallbackFactory = Callable[[str, Difficulty, int], list[QuestionRecord]]
Sleep = Callable[[float], Awaitable[None]]


class QuestionSource(Protocol):
    """Anything that turns a request into a raw service response."""

    async def generate(self, request: GenerationRequest) -> str:
        """Return the raw response text, or raise TransportError."""
        ...


def _default_fallback(topic: str, difficulty: Difficulty, count: int) -> list[QuestionRecord]:
    return build_fallback_questions(topic, difficulty, count, limit=FALLBACK_LIMIT)


class AcquisitionController:
    """Acquire ``desired_count`` questions for a request.

    One controller serves one acquisition at a time; concurrent
    acquisitions need separate instances.

    Usage:
        controller = AcquisitionController(GeminiClient(config))
        result = await controller.acquire(
            GenerationRequest("Algorithms", Difficulty.MEDIUM, 10)
        )
        if result.fallback_used:
            ...
    """

    def __init__(
        self,
        source: QuestionSource,
        *,
        strategy: BackoffStrategy | None = None,
        decoder: Decoder = decode_response,
        fallback: FallbackFactory = _default_fallback,
        sleep: Sleep = asyncio.sleep,
        on_retry: Callable[[AttemptOutcome], None] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            source: Generation capability (usually a GeminiClient)
            strategy: Attempt limit and backoff delays
            decoder: Turns a raw response into records
            fallback: Builds placeholder records once attempts are exhausted
            sleep: Awaitable used for backoff waits
            on_retry: Callback called before each backoff wait
        """
        self.source = source
        self.strategy = strategy or BackoffStrategy()
        self.decoder = decoder
        self.fallback = fallback
        self.sleep = sleep
        self.on_retry = on_retry
        self.state = AcquisitionState.IDLE
        self.history: list[AcquisitionState] = [AcquisitionState.IDLE]

    def _transition(self, state: AcquisitionState) -> None:
        logger.debug(f"Acquisition state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def _attempt(
        self, request: GenerationRequest, outcome: AttemptOutcome
    ) -> tuple[list[QuestionRecord], Exception | None]:
        try:
            raw = await self.source.generate(request)
            records = self.decoder(raw, request.difficulty)
        except Exception as e:  # Any failed call counts as a zero-yield attempt
            outcome.error = str(e)
            outcome.error_category = categorize_error(e)
            logger.warning(
                f"Attempt {outcome.attempt} failed ({outcome.error_category.value}): {e}"
            )
            return [], e
        return records, None

    async def acquire(self, request: GenerationRequest) -> AcquisitionResult:
        """Run attempts until the request is satisfied or attempts run out.

        Returns:
            A DONE result with exactly ``desired_count`` records, or an
            EXHAUSTED result holding fallback records
        """
        self.state = AcquisitionState.IDLE
        self.history = [AcquisitionState.IDLE]
        accumulated: list[QuestionRecord] = []
        outcomes: list[AttemptOutcome] = []
        target = request.desired_count

        for attempt in range(1, self.strategy.max_attempts + 1):
            remaining = target - len(accumulated)
            self._transition(AcquisitionState.REQUESTING)
            logger.info(
                f"Attempt {attempt}/{self.strategy.max_attempts}: requesting {remaining} "
                f"{request.difficulty.value} questions on {request.topic!r}"
            )
            outcome = AttemptOutcome(attempt=attempt, requested=remaining)
            outcomes.append(outcome)

            records, error = await self._attempt(request.with_count(remaining), outcome)
            outcome.yielded = len(records)
            accumulated.extend(records)

            if len(accumulated) >= target:
                outcome.state = AcquisitionState.SUFFICIENT
                self._transition(AcquisitionState.SUFFICIENT)
                self._transition(AcquisitionState.DONE)
                logger.info(f"Acquired {target} questions in {attempt} attempt(s)")
                return AcquisitionResult(
                    records=tuple(accumulated[:target]),
                    state=AcquisitionState.DONE,
                    attempts=tuple(outcomes),
                )

            partial = bool(records)
            outcome.state = AcquisitionState.SHORTFALL if partial else AcquisitionState.FAILED
            self._transition(outcome.state)
            if partial:
                logger.info(
                    f"Got {len(records)} questions, {target - len(accumulated)} still needed"
                )

            if attempt < self.strategy.max_attempts:
                delay = self.strategy.compute_delay(partial, error)
                outcome.delay = delay
                self._transition(AcquisitionState.RETRYING)
                if self.on_retry:
                    self.on_retry(outcome)
                logger.info(f"Retry attempt {attempt} of {self.strategy.max_attempts}, waiting {delay:.1f}s")
                await self.sleep(delay)

        self._transition(AcquisitionState.EXHAUSTED)
        logger.warning(
            f"Only {len(accumulated)}/{target} questions after "
            f"{self.strategy.max_attempts} attempts, using fallback questions"
        )
        return AcquisitionResult(
            records=tuple(self.fallback(request.topic, request.difficulty, target)),
            state=AcquisitionState.EXHAUSTED,
            fallback_used=True,
            attempts=tuple(outcomes),
        )
