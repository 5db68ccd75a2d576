"""Configuration management for quizgen."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, Field, field_validator

from quizgen.backoff import BackoffStrategy

API_KEY_PLACEHOLDER = "YOUR_GEMINI_API_KEY_HERE"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1/models"

_LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
# Attributes every LogRecord carries; anything else came in through extra=
_LOG_RECORD_KEYS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def _parse_log_level(level: str) -> int:
    normalized = level.strip().lower()
    if normalized in _LOG_LEVELS:
        return _LOG_LEVELS[normalized]
    valid = ", ".join(sorted({k for k in _LOG_LEVELS if k != "warn"}))
    raise ValueError(f"Invalid log level: {level}. Valid: {valid}")


def _coerce_log_levels(levels: dict[str, str]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for name, level in levels.items():
        _parse_log_level(level)
        normalized[name] = level.strip().lower()
    return normalized


def _iter_log_levels(
    default_level: str,
    per_component: dict[str, str],
) -> Iterable[int]:
    yield _parse_log_level(default_level)
    for level in per_component.values():
        yield _parse_log_level(level)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return str(value)


class _StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _LOG_RECORD_KEYS:
                continue
            payload[key] = _jsonable(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(config: "QuizgenConfig") -> None:
    """Configure structured logging for CLI usage."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler: logging.Handler
    if config.log_file:
        handler = logging.FileHandler(config.log_file)
    else:
        handler = logging.StreamHandler()
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(_StructuredFormatter())
    root_logger.addHandler(handler)

    min_level = min(_iter_log_levels(config.log_level, config.log_levels))
    root_logger.setLevel(min_level)

    for name, level in config.log_levels.items():
        logging.getLogger(name).setLevel(_parse_log_level(level))


class RetryConfig(BaseModel):
    """Retry configuration for question acquisition."""

    max_attempts: int = Field(default=3, ge=1, le=10, description="Generation calls per acquisition")
    shortfall_delay: float = Field(
        default=1.0, ge=0.0, description="Wait after an attempt that returned some questions (seconds)"
    )
    failure_delay: float = Field(
        default=2.0, ge=0.0, description="Wait after an attempt that returned nothing (seconds)"
    )
    fallback_limit: int = Field(
        default=5, ge=1, le=20, description="Maximum placeholder questions when attempts run out"
    )

    def to_strategy(self) -> BackoffStrategy:
        return BackoffStrategy(
            max_attempts=self.max_attempts,
            shortfall_delay=self.shortfall_delay,
            failure_delay=self.failure_delay,
        )


class QuizgenConfig(BaseModel):
    """Main configuration for quizgen."""

    api_key: str | None = Field(default=None, description="Gemini API key")
    model: str = Field(default=DEFAULT_MODEL, description="Gemini model name")
    api_base: str = Field(default=DEFAULT_API_BASE, description="Base URL of the models endpoint")
    connect_timeout: float = Field(default=60.0, gt=0.0, description="Connect timeout (seconds)")
    read_timeout: float = Field(default=60.0, gt=0.0, description="Read timeout (seconds)")
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry configuration")

    cache_questions: bool = Field(
        default=True, description="Keep generated questions for the session"
    )
    shuffle_options: bool = Field(
        default=False, description="Shuffle option order (the correct index follows)"
    )

    log_level: str = Field(default="warning", description="Log level")
    log_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-component log levels (e.g., {'quizgen.acquisition': 'debug'})",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (structured JSON)",
    )

    @field_validator("model")
    @classmethod
    def _validate_model(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("model must not be empty")
        return value

    @field_validator("api_base")
    @classmethod
    def _validate_api_base(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        _parse_log_level(value)
        return value.strip().lower()

    @field_validator("log_levels")
    @classmethod
    def _validate_log_levels(cls, value: dict[str, str]) -> dict[str, str]:
        return _coerce_log_levels(value)

    @property
    def is_api_key_configured(self) -> bool:
        key = (self.api_key or "").strip()
        return bool(key) and key != API_KEY_PLACEHOLDER

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/{self.model}:generateContent"

    def with_env(self) -> "QuizgenConfig":
        """Return a copy with GEMINI_API_KEY / QUIZGEN_MODEL applied."""
        updates: dict[str, Any] = {}
        api_key = os.environ.get("GEMINI_API_KEY")
        if api_key:
            updates["api_key"] = api_key
        model = os.environ.get("QUIZGEN_MODEL")
        if model:
            updates["model"] = model
        if not updates:
            return self
        return self.model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_file(cls, path: str | Path) -> "QuizgenConfig":
        """Load configuration from TOML file."""
        import tomllib

        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)

    @classmethod
    def default_path(cls) -> Path:
        """Get default config file path."""
        return Path.home() / ".config" / "quizgen" / "config.toml"

    def save(self, path: str | Path) -> Path:
        """Write this configuration as TOML."""
        import tomli_w

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(exclude_none=True)
        with open(path, "wb") as f:
            tomli_w.dump(data, f)
        return path
