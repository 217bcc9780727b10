"""Data structures shared by the quiz pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping, Optional, Sequence, Union

from .errors import SettingsError

__all__ = [
    "CUSTOM_SECONDS",
    "MIN_CUSTOM_SECONDS",
    "MAX_QUESTIONS",
    "QuizSettings",
    "Question",
    "QuestionSet",
    "QuizResult",
    "QuizHistoryEntry",
    "resolve_seconds",
    "score_answers",
]


CUSTOM_SECONDS = "custom"
MIN_CUSTOM_SECONDS = 5
MAX_QUESTIONS = 60


def resolve_seconds(
    choice: Union[int, str], custom: Optional[int] = None
) -> int:
    """Turn a seconds-per-question choice into an explicit duration.

    ``choice`` is either a positive integer or :data:`CUSTOM_SECONDS`, in
    which case ``custom`` must be an integer of at least 5.
    """
    if choice == CUSTOM_SECONDS:
        if custom is None or isinstance(custom, bool):
            raise SettingsError("A custom time per question is required.")
        if int(custom) < MIN_CUSTOM_SECONDS:
            raise SettingsError(
                f"Custom time must be at least {MIN_CUSTOM_SECONDS} seconds."
            )
        return int(custom)
    if isinstance(choice, bool) or not isinstance(choice, int) or choice <= 0:
        raise SettingsError("Time per question must be a positive integer.")
    return choice


@dataclass(frozen=True)
class QuizSettings:
    """Inputs for one generation request."""

    content: str
    api_key: str = field(repr=False)
    question_count: int = 10
    seconds_per_question: int = 30
    show_explanations: bool = False

    def validate(self) -> None:
        if not self.content.strip():
            raise SettingsError("Content is required to generate questions.")
        if not self.api_key.strip():
            raise SettingsError("An API key is required.")
        if not 1 <= self.question_count <= MAX_QUESTIONS:
            raise SettingsError(
                f"Question count must be between 1 and {MAX_QUESTIONS}."
            )
        if self.seconds_per_question <= 0:
            raise SettingsError("Time per question must be positive.")

    def to_public_dict(self) -> MutableMapping[str, Any]:
        """Settings without the key material, for storage and reports."""
        return {
            "questionCount": self.question_count,
            "timePerQuestion": self.seconds_per_question,
            "showExplanations": self.show_explanations,
        }


@dataclass(frozen=True)
class Question:
    """A validated multiple-choice question with exactly four options."""

    id: int
    question: str
    options: tuple[str, str, str, str]
    correct_answer: int
    explanation: Optional[str] = None

    def is_correct(self, answer: Optional[int]) -> bool:
        return answer is not None and answer == self.correct_answer

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
        }
        if self.explanation is not None:
            payload["explanation"] = self.explanation
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        explanation = payload.get("explanation")
        return cls(
            id=int(payload["id"]),
            question=str(payload["question"]),
            options=tuple(str(opt) for opt in payload["options"]),  # type: ignore[arg-type]
            correct_answer=int(payload["correctAnswer"]),
            explanation=str(explanation) if explanation is not None else None,
        )


QuestionSet = tuple[Question, ...]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class QuizResult:
    """A finished quiz attempt."""

    questions: QuestionSet
    answers: tuple[Optional[int], ...]
    score: int
    total_questions: int
    settings: QuizSettings
    title: str = ""
    completed_at: str = field(default_factory=_timestamp)

    def __post_init__(self) -> None:
        if not self.title:
            label = datetime.now().strftime("%Y-%m-%d")
            object.__setattr__(self, "title", f"Quiz - {label}")

    @property
    def percentage(self) -> int:
        if not self.total_questions:
            return 0
        return round(self.score / self.total_questions * 100)

    def to_record(self, user_id: str) -> MutableMapping[str, Any]:
        """Build the persisted document. The API key is never included."""
        return {
            "userId": user_id,
            "title": self.title,
            "content": self.settings.content,
            "questions": [q.to_dict() for q in self.questions],
            "answers": list(self.answers),
            "score": self.score,
            "totalQuestions": self.total_questions,
            "percentage": self.percentage,
            "timePerQuestion": self.settings.seconds_per_question,
            "showExplanations": self.settings.show_explanations,
            "createdAt": self.completed_at,
            "completedAt": self.completed_at,
        }


@dataclass(frozen=True)
class QuizHistoryEntry:
    """Summary row returned by history queries."""

    id: str
    user_id: str
    title: str
    score: int
    total_questions: int
    percentage: int
    created_at: str

    @classmethod
    def from_record(
        cls, result_id: str, record: Mapping[str, Any]
    ) -> "QuizHistoryEntry":
        return cls(
            id=result_id,
            user_id=str(record.get("userId", "")),
            title=str(record.get("title", "")),
            score=int(record.get("score", 0)),
            total_questions=int(record.get("totalQuestions", 0)),
            percentage=int(record.get("percentage", 0)),
            created_at=str(record.get("createdAt", "")),
        )


def score_answers(
    questions: Sequence[Question], answers: Sequence[Optional[int]]
) -> int:
    """Count positions where the recorded answer is the correct index."""
    return sum(
        1 for question, answer in zip(questions, answers)
        if question.is_correct(answer)
    )
