"""Tests for the quizgen command line."""

from __future__ import annotations

import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from quizgen import __version__, cli
from quizgen.acquisition import AcquisitionController
from quizgen.bank import QuestionBank
from quizgen.config import API_KEY_PLACEHOLDER, QuizgenConfig

runner = CliRunner()


def gemini_response(count: int) -> str:
    questions = [
        {
            "question": f"Question {n}?",
            "options": ["A", "B", "C", "D"],
            "correctIndex": 2,
            "explanation": "Because.",
        }
        for n in range(count)
    ]
    return json.dumps({"candidates": [{"content": {"parts": [{"text": json.dumps(questions)}]}}]})


class FakeSource:
    def __init__(self):
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        return gemini_response(request.desired_count)


async def no_sleep(delay: float) -> None:
    return None


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "configure_logging", lambda config: None)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("QUIZGEN_MODEL", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


@pytest.fixture
def fake_source(monkeypatch):
    source = FakeSource()

    def make_bank(config):
        return QuestionBank(
            config,
            source=source,
            controller_factory=lambda src, strategy: AcquisitionController(
                src, strategy=strategy, sleep=no_sleep
            ),
        )

    monkeypatch.setattr(cli, "_make_bank", make_bank)
    return source


class TestVersion:
    """Tests for the --version flag."""

    def test_version_flag(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestGenerate:
    """Tests for the generate command."""

    def test_json_output(self, fake_source):
        result = runner.invoke(cli.app, ["generate", "Algorithms", "-d", "hard", "-n", "3", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["state"] == "done"
        assert not payload["fallback_used"]
        assert len(payload["questions"]) == 3
        assert payload["questions"][0]["difficulty"] == "Hard"
        assert fake_source.requests[0].desired_count == 3

    def test_table_output(self, fake_source, monkeypatch):
        monkeypatch.setattr(cli, "console", Console(width=200))
        result = runner.invoke(cli.app, ["generate", "Algorithms", "-n", "2"])
        assert result.exit_code == 0
        assert "Question 0?" in result.output

    def test_without_key_shows_fallback(self):
        result = runner.invoke(cli.app, ["generate", "History", "-n", "2", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["fallback_used"]
        assert payload["state"] == "exhausted"
        assert len(payload["questions"]) == 2
        assert all(q["origin"] == "fallback" for q in payload["questions"])

    @pytest.mark.parametrize("count", ["0", "-2"])
    def test_non_positive_count(self, fake_source, count):
        result = runner.invoke(cli.app, ["generate", "Algorithms", "-n", count])
        assert result.exit_code == 1
        assert fake_source.requests == []

    def test_bad_difficulty(self, fake_source):
        result = runner.invoke(cli.app, ["generate", "Algorithms", "-d", "extreme"])
        assert result.exit_code == 2
        assert fake_source.requests == []


class TestDecode:
    """Tests for the offline decode command."""

    def test_decode_json(self, tmp_path):
        path = tmp_path / "response.json"
        path.write_text(gemini_response(2), encoding="utf-8")

        result = runner.invoke(cli.app, ["decode", str(path), "-d", "easy", "--json"])

        assert result.exit_code == 0
        records = json.loads(result.stdout)
        assert [r["question"] for r in records] == ["Question 0?", "Question 1?"]
        assert records[0]["correctIndex"] == 2

    def test_missing_file(self, tmp_path):
        result = runner.invoke(cli.app, ["decode", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    def test_no_payload(self, tmp_path):
        path = tmp_path / "response.json"
        path.write_text('{"error": {"code": 400}}', encoding="utf-8")
        result = runner.invoke(cli.app, ["decode", str(path)])
        assert result.exit_code == 1


class TestOtherCommands:
    """Tests for the domains, check and init commands."""

    def test_domains(self):
        result = runner.invoke(cli.app, ["domains"])
        assert result.exit_code == 0
        assert "Python Programming" in result.output

    def test_check_without_key(self):
        result = runner.invoke(cli.app, ["check"])
        assert result.exit_code == 1

    def test_check_success(self, fake_source, tmp_path):
        config_path = tmp_path / "config.toml"
        QuizgenConfig(api_key="real-key").save(config_path)

        result = runner.invoke(cli.app, ["check", "-c", str(config_path)])

        assert result.exit_code == 0
        assert "Success" in result.output
        assert len(fake_source.requests) == 1

    def test_init_with_key(self, tmp_path):
        path = tmp_path / "conf" / "config.toml"
        result = runner.invoke(cli.app, ["init", "-p", str(path), "--api-key", "abc"])
        assert result.exit_code == 0
        assert QuizgenConfig.from_file(path).api_key == "abc"

    def test_init_default_path_uses_placeholder(self, tmp_path):
        result = runner.invoke(cli.app, ["init"])
        assert result.exit_code == 0
        assert QuizgenConfig.from_file(tmp_path / ".config" / "quizgen" / "config.toml").api_key == API_KEY_PLACEHOLDER
