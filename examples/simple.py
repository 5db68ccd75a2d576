"""Simple example: Generate a quiz and print it."""

import asyncio

from quizgen import QuestionBank, QuizgenConfig


async def main():
    # Reads ~/.config/quizgen/config.toml, then GEMINI_API_KEY from the environment
    config = QuizgenConfig.from_file(QuizgenConfig.default_path()).with_env()
    bank = QuestionBank(config)
    try:
        result = await bank.get_questions("Data Structures", "Medium", 5)
    finally:
        await bank.aclose()

    if result.fallback_used:
        print("Service unavailable, showing placeholder questions")
    for number, record in enumerate(result, 1):
        print(f"{number}. {record.question_text}")
        for index, option in enumerate(record.options):
            marker = "*" if record.is_correct(index) else " "
            print(f"   {marker} {chr(65 + index)}) {option}")


if __name__ == "__main__":
    asyncio.run(main())
