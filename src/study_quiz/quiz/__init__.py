"""Quiz generation, validation and the timed quiz flow."""

from .errors import (
    InvalidKeyFormatError,
    KeyVerificationFailedError,
    QuizError,
    ResponseFormatError,
    SettingsError,
    TransportError,
)
from .generator import GenerationClient, OpenAIGeneration, classify_failure
from .models import Question, QuizHistoryEntry, QuizResult, QuizSettings
from .runner import QuizPhase, QuizRunner
from .validator import parse_questions

__all__ = [
    "QuizError",
    "SettingsError",
    "InvalidKeyFormatError",
    "KeyVerificationFailedError",
    "TransportError",
    "ResponseFormatError",
    "GenerationClient",
    "OpenAIGeneration",
    "classify_failure",
    "Question",
    "QuizSettings",
    "QuizResult",
    "QuizHistoryEntry",
    "QuizPhase",
    "QuizRunner",
    "parse_questions",
]
