from __future__ import annotations

import pytest

from study_quiz.quiz.errors import SettingsError
from study_quiz.quiz.models import (
    CUSTOM_SECONDS,
    Question,
    QuizHistoryEntry,
    QuizSettings,
    resolve_seconds,
)


def test_resolve_seconds_presets_and_custom():
    assert resolve_seconds(45) == 45
    assert resolve_seconds(CUSTOM_SECONDS, 5) == 5


@pytest.mark.parametrize(
    "choice, custom",
    [(0, None), (-3, None), (True, None), (CUSTOM_SECONDS, None), (CUSTOM_SECONDS, 4)],
)
def test_resolve_seconds_rejects_bad_input(choice, custom):
    with pytest.raises(SettingsError):
        resolve_seconds(choice, custom)


@pytest.mark.parametrize(
    "overrides",
    [
        {"content": "   "},
        {"api_key": ""},
        {"question_count": 0},
        {"question_count": 61},
        {"seconds_per_question": 0},
    ],
)
def test_settings_validation(overrides):
    values = dict(content="text", api_key="sk-abcdefghij")
    values.update(overrides)
    with pytest.raises(SettingsError):
        QuizSettings(**values).validate()


def test_settings_repr_hides_key():
    settings = QuizSettings(content="text", api_key="sk-very-secret")
    assert "sk-very-secret" not in repr(settings)
    assert "api_key" not in settings.to_public_dict()


def test_question_dict_uses_wire_names():
    question = Question(
        id=1,
        question="Q?",
        options=("a", "b", "c", "d"),
        correct_answer=2,
        explanation="why",
    )
    payload = question.to_dict()
    assert payload["correctAnswer"] == 2
    assert Question.from_dict(payload) == question
    assert "explanation" not in Question.from_dict(
        {**payload, "explanation": None}
    ).to_dict()


def test_history_entry_from_record_tolerates_missing_fields():
    entry = QuizHistoryEntry.from_record("abc", {"userId": "u", "score": 3})
    assert entry.id == "abc"
    assert entry.score == 3
    assert entry.total_questions == 0
    assert entry.title == ""
