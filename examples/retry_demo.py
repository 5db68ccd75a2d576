"""Retry demo: Watch the acquisition controller top up a short batch."""

import asyncio
import json

from quizgen import AcquisitionController, BackoffStrategy, GenerationRequest


class FlakySource:
    """Returns two questions, then fails once, then delivers the rest."""

    def __init__(self):
        self.calls = 0

    async def generate(self, request):
        self.calls += 1
        if self.calls == 2:
            raise ConnectionError("connection reset by peer")
        count = min(request.desired_count, 2 if self.calls == 1 else request.desired_count)
        questions = [
            {
                "question": f"Call {self.calls}, question {n + 1}?",
                "options": ["A", "B", "C", "D"],
                "correctIndex": n % 4,
            }
            for n in range(count)
        ]
        text = "```json\n" + json.dumps(questions) + "\n```"
        return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]})


async def main():
    controller = AcquisitionController(
        FlakySource(),
        strategy=BackoffStrategy(max_attempts=3, shortfall_delay=0.2, failure_delay=0.5),
        on_retry=lambda outcome: print(
            f"[RETRY] attempt {outcome.attempt}: {outcome.state.value}, "
            f"{outcome.yielded}/{outcome.requested} questions, waiting {outcome.delay}s"
        ),
    )
    result = await controller.acquire(GenerationRequest("Algorithms", "Easy", 5))

    print(f"\n--- {result.state.value} ---")
    for record in result:
        print(record.question_text)
    print(f"Attempts: {len(result.attempts)}")
    print(f"Fallback used: {result.fallback_used}")


if __name__ == "__main__":
    asyncio.run(main())
