"""Shared testing helpers for the study_quiz test suite."""

from .generation import FakeCapability, question_payload, questions_json  # noqa: F401
from .openai import FakeOpenAIFactory  # noqa: F401
from .workspace import SAMPLE_CONTENT, QuizWorkspace  # noqa: F401

__all__ = [
    "FakeCapability",
    "FakeOpenAIFactory",
    "QuizWorkspace",
    "SAMPLE_CONTENT",
    "question_payload",
    "questions_json",
]
