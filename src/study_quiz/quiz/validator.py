"""Turn raw model output into validated questions.

The model output is untrusted. Structural problems with the response as a
whole are fatal (see :mod:`.errors`); problems with a single candidate only
drop that candidate so one bad question does not void the batch.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from .errors import (
    EmptyArrayError,
    MalformedJsonError,
    NoJsonFoundError,
    NotAnArrayError,
    NoValidQuestionsError,
)
from .models import Question, QuestionSet

__all__ = ["parse_questions", "strip_code_fences"]

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
OPTION_COUNT = 4


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fence markers, keeping what is between them."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_questions(
    raw: str,
    *,
    requested_count: int,
    include_explanations: bool,
) -> QuestionSet:
    """Validate ``raw`` into at most ``requested_count`` questions.

    Ids are reassigned 1..n in survival order and surplus valid candidates
    are dropped first-validated-first-kept.
    """
    candidates = _extract_array(raw)

    questions: List[Question] = []
    for position, candidate in enumerate(candidates, start=1):
        question = _validate_candidate(
            candidate,
            position=position,
            next_id=len(questions) + 1,
            include_explanation=include_explanations,
        )
        if question is not None:
            questions.append(question)

    if not questions:
        raise NoValidQuestionsError(
            "No valid questions could be generated from the API response."
        )
    if len(questions) < requested_count:
        logger.warning(
            "Fewer valid questions than requested",
            extra={"valid": len(questions), "requested": requested_count},
        )
    return tuple(questions[:requested_count])


def _extract_array(raw: str) -> list:
    cleaned = strip_code_fences(raw)
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start == -1 or end == -1 or end < start:
        logger.error(
            "No JSON array found in response",
            extra={"preview": cleaned[:200]},
        )
        raise NoJsonFoundError("No valid JSON array found in the response.")

    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        logger.error("JSON parsing failed", extra={"error": str(exc)})
        raise MalformedJsonError(
            "Invalid JSON format in the API response."
        ) from exc

    if not isinstance(data, list):
        raise NotAnArrayError("The API response is not a JSON array.")
    if not data:
        raise EmptyArrayError("No questions were generated.")
    return data


def _validate_candidate(
    candidate: Any,
    *,
    position: int,
    next_id: int,
    include_explanation: bool,
) -> Optional[Question]:
    problem = _candidate_problem(candidate)
    if problem:
        logger.warning(
            "Dropping invalid question candidate",
            extra={"position": position, "problem": problem},
        )
        return None

    explanation = None
    raw_explanation = candidate.get("explanation")
    if include_explanation and isinstance(raw_explanation, str) and raw_explanation:
        explanation = raw_explanation.strip()

    return Question(
        id=next_id,
        question=candidate["question"].strip(),
        options=tuple(opt.strip() for opt in candidate["options"]),  # type: ignore[arg-type]
        correct_answer=int(candidate["correctAnswer"]),
        explanation=explanation,
    )


def _candidate_problem(candidate: Any) -> Optional[str]:
    if not isinstance(candidate, dict):
        return "not an object"
    text = candidate.get("question")
    if not isinstance(text, str) or not text.strip():
        return "invalid question text"
    options = candidate.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        return "invalid options array"
    if not all(isinstance(opt, str) and opt.strip() for opt in options):
        return "invalid option format"
    answer = candidate.get("correctAnswer")
    if (
        isinstance(answer, bool)
        or not isinstance(answer, (int, float))
        or not 0 <= answer <= OPTION_COUNT - 1
        or answer != int(answer)
    ):
        return "invalid correct answer index"
    return None
