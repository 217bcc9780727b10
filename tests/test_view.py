from __future__ import annotations

from study_quiz.quiz.models import Question, QuizSettings
from study_quiz.quiz.runner import QuizPhase
from study_quiz.quiz.view import QuizApp

QUESTIONS = (
    Question(1, "First?", ("a", "b", "c", "d"), 1, "Because b."),
    Question(2, "Second?", ("w", "x", "y", "z"), 3),
)


def _app(show_explanations: bool = True, seconds: int = 5) -> QuizApp:
    settings = QuizSettings(
        content="c",
        api_key="k",
        question_count=2,
        seconds_per_question=seconds,
        show_explanations=show_explanations,
    )
    return QuizApp(QUESTIONS, settings)


def test_initial_texts():
    app = _app()
    assert app.header_text() == "Question 1 of 2"
    assert app.timer_text() == "Time left: 5s"
    assert app.option_label(0) == "A) a"
    assert app.feedback_text() == ""
    assert "a-d" in app.hint_text()


def test_selection_marks_option():
    app = _app()
    app.action_select(2)
    assert app.option_classes(2) == {"selected"}
    assert app.option_classes(1) == set()


def test_correct_answer_feedback_with_explanation():
    app = _app()
    app.action_select(1)
    app.action_submit()
    assert app.runner.phase is QuizPhase.FEEDBACK
    assert app.feedback_text() == "Correct!\nBecause b."
    assert app.option_classes(1) == {"correct"}
    assert "next question" in app.hint_text()


def test_wrong_answer_feedback_without_explanations():
    app = _app(show_explanations=False)
    app.action_select(0)
    app.action_submit()
    assert app.feedback_text() == "Incorrect. The correct answer was B."
    assert app.option_classes(0) == {"wrong"}
    assert app.option_classes(1) == {"correct"}


def test_timeout_feedback():
    app = _app(seconds=1)
    app._on_tick()
    assert app.feedback_text().startswith("Time's up!")


def test_completion_stores_result_without_running():
    app = _app()
    for answer in (1, 0):
        app.action_select(answer)
        app.action_submit()
        app.action_next()
    assert app.runner.phase is QuizPhase.COMPLETED
    assert app.result is not None
    assert app.result.score == 1
    assert app.result.answers == (1, 0)
