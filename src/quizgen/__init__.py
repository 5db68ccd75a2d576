"""quizgen - resilient quiz-question generation from Gemini responses."""

__version__ = "1.0.0"

# Re-export core components for convenience
from .acquisition import AcquisitionController, QuestionSource
from .assembler import assemble_record, assemble_records, decode_response, parse_options
from .backoff import BackoffStrategy, ErrorCategory, categorize_error
from .bank import DEFAULT_DOMAINS, QuestionBank
from .client import GeminiClient, build_prompt
from .config import QuizgenConfig, RetryConfig, configure_logging
from .exceptions import (
    AuthenticationError,
    ConfigError,
    PayloadNotFound,
    QuizgenError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from .fallback import build_fallback_questions
from .json_utils import decode_candidates, locate_response_text
from .models import (
    AcquisitionResult,
    AcquisitionState,
    AttemptOutcome,
    Difficulty,
    GenerationRequest,
    QuestionRecord,
    QuestionType,
    RecordOrigin,
)

__all__ = [
    # Core
    "AcquisitionController",
    "QuestionSource",
    "QuestionBank",
    "DEFAULT_DOMAINS",
    "GeminiClient",
    "build_prompt",
    "QuizgenConfig",
    "RetryConfig",
    "configure_logging",
    # Decoding
    "locate_response_text",
    "decode_candidates",
    "decode_response",
    "assemble_record",
    "assemble_records",
    "parse_options",
    "build_fallback_questions",
    # Models
    "AcquisitionResult",
    "AcquisitionState",
    "AttemptOutcome",
    "Difficulty",
    "GenerationRequest",
    "QuestionRecord",
    "QuestionType",
    "RecordOrigin",
    # Exceptions
    "AuthenticationError",
    "ConfigError",
    "PayloadNotFound",
    "QuizgenError",
    "RateLimitError",
    "TransportError",
    "ValidationError",
    # Backoff
    "BackoffStrategy",
    "ErrorCategory",
    "categorize_error",
]
