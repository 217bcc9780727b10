from __future__ import annotations

from rich.console import Console

from study_quiz.quiz import report
from study_quiz.quiz.models import Question, QuizHistoryEntry, QuizResult, QuizSettings


def _console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def _result(show_explanations: bool = True) -> QuizResult:
    questions = (
        Question(1, "Capital of France?", ("Paris", "Rome", "Oslo", "Bern"), 0, "Paris is the capital."),
        Question(2, "2 + 2?", ("3", "4", "5", "6"), 1, "Basic arithmetic."),
    )
    return QuizResult(
        questions=questions,
        answers=(0, None),
        score=1,
        total_questions=2,
        settings=QuizSettings(
            content="c", api_key="k", show_explanations=show_explanations
        ),
        title="Geography",
    )


def test_render_result_shows_score_and_answers():
    console = _console()
    report.render_result(console, _result(), result_id="abc123")
    output = console.export_text()
    assert "Geography" in output
    assert "50%" in output
    assert "(no answer)" in output
    assert "B) 4" in output
    assert "abc123" in output
    assert "Paris is the capital." in output


def test_render_result_hides_explanations_when_disabled():
    console = _console()
    report.render_result(console, _result(show_explanations=False))
    assert "Basic arithmetic." not in console.export_text()


def test_render_record_from_stored_document():
    record = _result().to_record("alice")
    console = _console()
    report.render_record(console, record)
    output = console.export_text()
    assert "Score: 1/2 (50%)" in output
    assert "Capital of France?" in output


def test_render_history_lists_entries_and_empty_state():
    console = _console()
    report.render_history(console, [])
    assert "No saved quizzes yet." in console.export_text()

    console = _console()
    report.render_history(
        console,
        [QuizHistoryEntry("r1", "alice", "Biology", 3, 4, 75, "2024-05-01")],
    )
    output = console.export_text()
    assert "Biology" in output
    assert "3/4" in output
    assert "75%" in output
