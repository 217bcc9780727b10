"""Error taxonomy for quiz generation.

Every error carries a message that can be shown to the user as-is.
"""

from __future__ import annotations

__all__ = [
    "FAILURE_REASONS",
    "QuizError",
    "SettingsError",
    "InvalidKeyFormatError",
    "KeyVerificationFailedError",
    "TransportError",
    "ResponseFormatError",
    "NoJsonFoundError",
    "MalformedJsonError",
    "NotAnArrayError",
    "EmptyArrayError",
    "NoValidQuestionsError",
]


FAILURE_REASONS = (
    "authentication",
    "quota",
    "network",
    "model_unavailable",
    "malformed_request",
    "rate_limited",
    "unknown",
)


class QuizError(RuntimeError):
    """Base class for quiz generation failures."""


class SettingsError(QuizError):
    """Raised when quiz settings are unusable."""


class InvalidKeyFormatError(QuizError):
    """Raised by the local key pre-flight; no request was made."""


class _ReasonedError(QuizError):
    def __init__(self, message: str, *, reason: str = "unknown") -> None:
        super().__init__(message)
        self.reason = reason if reason in FAILURE_REASONS else "unknown"


class KeyVerificationFailedError(_ReasonedError):
    """Raised when the verification request fails or answers unexpectedly."""


class TransportError(_ReasonedError):
    """Raised when the generation request itself fails."""


class ResponseFormatError(QuizError):
    """Base class for generation output that cannot yield any question."""


class NoJsonFoundError(ResponseFormatError):
    pass


class MalformedJsonError(ResponseFormatError):
    pass


class NotAnArrayError(ResponseFormatError):
    pass


class EmptyArrayError(ResponseFormatError):
    pass


class NoValidQuestionsError(ResponseFormatError):
    pass
