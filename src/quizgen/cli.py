"""CLI interface for quizgen."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from quizgen import __version__
from quizgen.assembler import decode_response
from quizgen.bank import QuestionBank
from quizgen.config import API_KEY_PLACEHOLDER, QuizgenConfig, configure_logging
from quizgen.exceptions import PayloadNotFound, ValidationError
from quizgen.models import AcquisitionResult, Difficulty, QuestionRecord

app = typer.Typer(
    name="quizgen",
    help="Generate validated multiple-choice quizzes with Gemini.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"quizgen version {__version__}")
        raise typer.Exit()


def difficulty_callback(value: str) -> Difficulty:
    """Validate difficulty name."""
    try:
        return Difficulty.parse(value)
    except ValidationError:
        valid = ", ".join(d.value for d in Difficulty)
        raise typer.BadParameter(f"Invalid difficulty. Valid: {valid}") from None


def _load_config(path: Path | None) -> QuizgenConfig:
    if path is None:
        path = QuizgenConfig.default_path()
    return QuizgenConfig.from_file(path).with_env()


def _make_bank(config: QuizgenConfig) -> QuestionBank:
    return QuestionBank(config)


def _render_records(records: list[QuestionRecord] | tuple[QuestionRecord, ...], title: str) -> None:
    table = Table(title=title, expand=True, show_lines=True)
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Question", max_width=60)
    table.add_column("Options")
    table.add_column("Explanation", style="dim", max_width=40)
    for number, record in enumerate(records, 1):
        options = "\n".join(
            f"[green]{chr(65 + i)}) {option}[/green]" if record.is_correct(i) else f"{chr(65 + i)}) {option}"
            for i, option in enumerate(record.options)
        )
        table.add_row(str(number), record.question_text, options, record.explanation)
    console.print(table)


def _print_result(result: AcquisitionResult, as_json: bool) -> None:
    if as_json:
        payload = {
            "state": result.state.value,
            "fallback_used": result.fallback_used,
            "attempts": len(result.attempts),
            "questions": [record.to_dict() for record in result.records],
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if result.fallback_used:
        console.print(
            Panel(
                "The generation service could not deliver questions.\n"
                "Showing placeholder questions; they are not AI-generated.",
                title="Fallback",
                border_style="yellow",
            )
        )
    _render_records(result.records, f"{len(result)} questions ({result.state.value})")


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Generate validated multiple-choice quizzes with Gemini."""


@app.command()
def generate(
    topic: Annotated[str, typer.Argument(help="Quiz topic")],
    difficulty: Annotated[
        str,
        typer.Option("--difficulty", "-d", callback=difficulty_callback, help="Easy, Medium or Hard"),
    ] = Difficulty.MEDIUM.value,
    count: Annotated[int, typer.Option("--count", "-n", help="Number of questions")] = 5,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file path")
    ] = None,
    shuffle: Annotated[bool, typer.Option("--shuffle", help="Shuffle option order")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Output machine-readable JSON")] = False,
) -> None:
    """Generate a quiz on TOPIC."""
    config = _load_config(config_path)
    configure_logging(config)
    if shuffle:
        config = config.model_copy(update={"shuffle_options": True})

    if count <= 0:
        console.print("[red]Question count must be a positive integer[/red]")
        raise typer.Exit(1)

    async def _run() -> AcquisitionResult:
        bank = _make_bank(config)
        try:
            return await bank.get_questions(topic, difficulty, count)
        finally:
            await bank.aclose()

    try:
        result = asyncio.run(_run())
    except ValidationError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1) from None
    _print_result(result, as_json)


@app.command()
def decode(
    response_file: Annotated[Path, typer.Argument(help="File holding a raw service response")],
    difficulty: Annotated[
        str,
        typer.Option("--difficulty", "-d", callback=difficulty_callback, help="Easy, Medium or Hard"),
    ] = Difficulty.MEDIUM.value,
    as_json: Annotated[bool, typer.Option("--json", help="Output machine-readable JSON")] = False,
) -> None:
    """Run the decoding pipeline on a saved raw response."""
    if not response_file.exists():
        console.print(f"[red]File not found: {response_file}[/red]")
        raise typer.Exit(1)
    raw = response_file.read_text(encoding="utf-8")
    try:
        records = decode_response(raw, difficulty)
    except PayloadNotFound as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from None

    if as_json:
        typer.echo(json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False))
        return
    _render_records(records, f"{len(records)} decoded questions")


@app.command()
def domains() -> None:
    """List the built-in quiz domains."""
    bank = QuestionBank(QuizgenConfig())
    for domain in bank.available_domains():
        console.print(f"  • {domain}")


@app.command()
def check(
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Config file path")
    ] = None,
) -> None:
    """Test the connection to Gemini."""
    config = _load_config(config_path)
    configure_logging(config)
    if not config.is_api_key_configured:
        console.print("[red]Gemini API key not configured.[/red] Run 'quizgen init --api-key KEY'.")
        raise typer.Exit(1)

    async def _run() -> bool:
        bank = _make_bank(config)
        try:
            return await bank.test_connection()
        finally:
            await bank.aclose()

    console.print("Testing Gemini AI connection... ", end="")
    if asyncio.run(_run()):
        console.print("[green]Success![/green]")
    else:
        console.print("[red]Failed - no questions generated[/red]")
        raise typer.Exit(1)


@app.command()
def init(
    path: Annotated[
        Path | None, typer.Option("--path", "-p", help="Config file path")
    ] = None,
    api_key: Annotated[
        str | None, typer.Option("--api-key", help="Gemini API key")
    ] = None,
) -> None:
    """Create a default config file."""
    if path is None:
        path = QuizgenConfig.default_path()
    config = QuizgenConfig(api_key=api_key or API_KEY_PLACEHOLDER)
    config.save(path)
    console.print(f"[green]Created config at:[/green] {path}")
    if not api_key:
        console.print("Add your Gemini API key to enable AI-generated questions.")
