"""Generation client: key checks and the quiz generation call.

The hosted model sits behind :class:`GenerationCapability` so the client is
provider-agnostic; :class:`OpenAIGeneration` is the production adapter.
Failures are never retried.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from study_quiz.core.ai import load_client
from study_quiz.core.config import OpenAIConfig
from study_quiz.core.logging import mask_secret

from .errors import (
    InvalidKeyFormatError,
    KeyVerificationFailedError,
    TransportError,
)
from .models import QuestionSet, QuizSettings
from .prompt import SYSTEM_PROMPT, VERIFY_EXPECTED, VERIFY_PROMPT, build_quiz_prompt
from .validator import parse_questions

__all__ = [
    "MIN_KEY_LENGTH",
    "GenerationCapability",
    "OpenAIGeneration",
    "GenerationClient",
    "check_key_format",
    "classify_failure",
]

logger = logging.getLogger(__name__)

MIN_KEY_LENGTH = 10
GENERATION_TEMPERATURE = 0.3
GENERATION_MAX_TOKENS = 4000
VERIFY_MAX_TOKENS = 20

_REASON_MESSAGES = {
    "authentication": "Authentication failed. Please verify your API key.",
    "quota": "API quota exceeded. Please check your usage and billing.",
    "network": "Network error. Please check your internet connection.",
    "model_unavailable": (
        "Model not available. Please check that your key can access it."
    ),
    "malformed_request": "Bad request. Please check your API key and retry.",
    "rate_limited": "Rate limit exceeded. Please wait a moment and retry.",
    "unknown": "Unexpected API error.",
}


class GenerationCapability(Protocol):
    """Anything that turns a prompt into generated text."""

    def complete(
        self,
        *,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
        api_key: str,
    ) -> str:
        """Return the generated text or raise on transport failure."""


class OpenAIGeneration:
    """Adapter for OpenAI chat completions."""

    def __init__(
        self,
        *,
        model: str = "gpt-4o-mini",
        api_base: Optional[str] = None,
        request_timeout: Optional[int] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._model = model
        self._api_base = api_base
        self._timeout = request_timeout
        self._system_prompt = system_prompt

    @classmethod
    def from_config(cls, config: OpenAIConfig) -> "OpenAIGeneration":
        return cls(
            model=config.model,
            api_base=config.api_base,
            request_timeout=config.request_timeout_seconds,
        )

    def complete(
        self,
        *,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
        api_key: str,
    ) -> str:
        client = load_client(
            api_key, api_base=self._api_base, timeout=self._timeout
        )
        response = client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=max_output_tokens,
        )
        content = response.choices[0].message.content or ""
        return content.strip()


def check_key_format(api_key: Optional[str]) -> str:
    """Reject obviously unusable keys without any network call."""
    key = (api_key or "").strip()
    if not key:
        raise InvalidKeyFormatError("API key is required. Please enter your key.")
    if len(key) < MIN_KEY_LENGTH:
        raise InvalidKeyFormatError(
            "Invalid API key format. API keys are typically longer."
        )
    return key


def classify_failure(error: Any) -> str:
    """Best-effort mapping of an error's text onto a failure reason."""
    text = str(error).lower()
    if "api key" in text and ("missing" in text or "invalid" in text):
        return "authentication"
    if any(
        token in text
        for token in ("authentication", "unauthorized", "401", "403", "forbidden")
    ):
        return "authentication"
    if "429" in text or "rate limit" in text or "rate_limit" in text:
        return "rate_limited"
    if any(token in text for token in ("quota", "billing", "limit")):
        return "quota"
    if any(
        token in text
        for token in ("network", "fetch", "connection", "timeout", "timed out")
    ):
        return "network"
    if "model" in text or "not found" in text or "404" in text:
        return "model_unavailable"
    if "400" in text or "bad request" in text:
        return "malformed_request"
    return "unknown"


class GenerationClient:
    """Verify keys and generate question sets through a capability."""

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        temperature: float = GENERATION_TEMPERATURE,
        max_output_tokens: int = GENERATION_MAX_TOKENS,
        verify_max_tokens: int = VERIFY_MAX_TOKENS,
    ) -> None:
        self._capability = capability
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._verify_max_tokens = verify_max_tokens

    @classmethod
    def from_config(
        cls,
        config: OpenAIConfig,
        *,
        capability: Optional[GenerationCapability] = None,
    ) -> "GenerationClient":
        return cls(
            capability or OpenAIGeneration.from_config(config),
            temperature=config.temperature,
            max_output_tokens=config.max_output_tokens,
            verify_max_tokens=config.verify_max_tokens,
        )

    def verify_key(self, api_key: Optional[str]) -> None:
        """Confirm the key works with a minimal request.

        Raises :class:`InvalidKeyFormatError` before any request for empty or
        short keys, otherwise :class:`KeyVerificationFailedError`.
        """
        key = check_key_format(api_key)
        logger.info("Verifying API key", extra={"key": mask_secret(key)})
        try:
            text = self._capability.complete(
                prompt=VERIFY_PROMPT,
                temperature=0.0,
                max_output_tokens=self._verify_max_tokens,
                api_key=key,
            )
        except Exception as exc:
            reason = classify_failure(exc)
            logger.error(
                "API key verification failed",
                extra={"reason": reason, "error": str(exc)},
            )
            raise KeyVerificationFailedError(
                f"{_REASON_MESSAGES[reason]} ({exc})", reason=reason
            ) from exc

        if "api key is working" not in (text or "").lower():
            logger.error(
                "Unexpected verification response",
                extra={"response": (text or "")[:80]},
            )
            raise KeyVerificationFailedError(
                "Unexpected response from API while verifying the key "
                f"(expected '{VERIFY_EXPECTED}').",
                reason="unknown",
            )
        logger.info("API key verified")

    def generate(self, settings: QuizSettings) -> QuestionSet:
        """Generate and validate questions for ``settings``.

        The key is verified again even if the caller already did so.
        """
        settings.validate()
        self.verify_key(settings.api_key)

        prompt = build_quiz_prompt(settings)
        logger.info(
            "Generating quiz questions",
            extra={
                "content_chars": len(settings.content),
                "question_count": settings.question_count,
                "explanations": settings.show_explanations,
            },
        )
        try:
            raw = self._capability.complete(
                prompt=prompt,
                temperature=self._temperature,
                max_output_tokens=self._max_output_tokens,
                api_key=settings.api_key.strip(),
            )
        except Exception as exc:
            reason = classify_failure(exc)
            logger.error(
                "Question generation request failed",
                extra={"reason": reason, "error": str(exc)},
            )
            raise TransportError(
                f"{_REASON_MESSAGES[reason]} ({exc})", reason=reason
            ) from exc

        logger.debug("Raw generation response", extra={"chars": len(raw or "")})
        questions = parse_questions(
            raw or "",
            requested_count=settings.question_count,
            include_explanations=settings.show_explanations,
        )
        logger.info(
            "Generated quiz questions", extra={"count": len(questions)}
        )
        return questions
