"""Timed quiz state machine.

One :class:`QuizRunner` drives one attempt: a question at a time, a
per-question countdown, feedback after each submission and a
:class:`~.models.QuizResult` once the last question is advanced past.
Illegal transitions are no-ops so the interactive flow stays forgiving.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .models import Question, QuizResult, QuizSettings, score_answers

__all__ = ["QuizPhase", "QuizRunState", "QuizRunner"]

logger = logging.getLogger(__name__)


class QuizPhase(enum.Enum):
    ANSWERING = "answering"
    FEEDBACK = "feedback"
    COMPLETED = "completed"


@dataclass(frozen=True)
class QuizRunState:
    """Read-only snapshot of a runner."""

    index: int
    answers: tuple[Optional[int], ...]
    selected: Optional[int]
    remaining_seconds: int
    feedback_shown: bool
    completed: bool

    @property
    def phase(self) -> QuizPhase:
        if self.completed:
            return QuizPhase.COMPLETED
        if self.feedback_shown:
            return QuizPhase.FEEDBACK
        return QuizPhase.ANSWERING


class QuizRunner:
    """Own the mutable state of one quiz attempt, timer included."""

    def __init__(
        self,
        questions: Sequence[Question],
        settings: QuizSettings,
        *,
        on_complete: Optional[Callable[[QuizResult], None]] = None,
    ) -> None:
        if not questions:
            raise ValueError("A quiz needs at least one question.")
        self._questions = tuple(questions)
        self._settings = settings
        self._duration = settings.seconds_per_question
        self._on_complete = on_complete

        self._answers: List[Optional[int]] = [None] * len(self._questions)
        self._index = 0
        self._phase = QuizPhase.ANSWERING
        self._selected: Optional[int] = None
        self._remaining = self._duration
        self._result: Optional[QuizResult] = None
        self._enter_question(0)

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def current(self) -> Question:
        return self._questions[self._index]

    @property
    def phase(self) -> QuizPhase:
        return self._phase

    @property
    def is_last_question(self) -> bool:
        return self._index == len(self._questions) - 1

    @property
    def result(self) -> Optional[QuizResult]:
        return self._result

    @property
    def state(self) -> QuizRunState:
        return QuizRunState(
            index=self._index,
            answers=tuple(self._answers),
            selected=self._selected,
            remaining_seconds=self._remaining,
            feedback_shown=self._phase is QuizPhase.FEEDBACK,
            completed=self._phase is QuizPhase.COMPLETED,
        )

    def select_answer(self, index: int) -> bool:
        """Select an option for the current question without recording it."""
        if self._phase is not QuizPhase.ANSWERING:
            return False
        if not 0 <= index < len(self.current.options):
            return False
        self._selected = index
        return True

    def submit_answer(self) -> bool:
        """Record the current selection (or None) and show feedback."""
        if self._phase is not QuizPhase.ANSWERING:
            return False
        self._answers[self._index] = self._selected
        self._phase = QuizPhase.FEEDBACK
        logger.debug(
            "Answer submitted",
            extra={"question": self.current.id, "answer": self._selected},
        )
        return True

    def tick(self, seconds: int = 1) -> bool:
        """Advance the countdown; submits automatically on reaching zero.

        Returns True when the tick caused a timeout submission.
        """
        if self._phase is not QuizPhase.ANSWERING or seconds <= 0:
            return False
        self._remaining = max(0, self._remaining - seconds)
        if self._remaining == 0:
            logger.info(
                "Question timed out", extra={"question": self.current.id}
            )
            self.submit_answer()
            return True
        return False

    def advance(self) -> bool:
        """Move past the feedback of the current question."""
        if self._phase is not QuizPhase.FEEDBACK:
            return False
        if self.is_last_question:
            self._complete()
        else:
            self._enter_question(self._index + 1)
        return True

    def _enter_question(self, index: int) -> None:
        self._index = index
        self._selected = None
        self._phase = QuizPhase.ANSWERING
        self._remaining = self._duration

    def _complete(self) -> None:
        self._phase = QuizPhase.COMPLETED
        answers = tuple(self._answers)
        self._result = QuizResult(
            questions=self._questions,
            answers=answers,
            score=score_answers(self._questions, answers),
            total_questions=len(self._questions),
            settings=self._settings,
        )
        logger.info(
            "Quiz completed",
            extra={
                "score": self._result.score,
                "total": self._result.total_questions,
            },
        )
        if self._on_complete is not None:
            self._on_complete(self._result)
