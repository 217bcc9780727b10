"""Rich renderers for finished quizzes and history listings."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Question, QuizHistoryEntry, QuizResult

__all__ = ["render_result", "render_record", "render_history"]

_KEYS = "ABCD"


def _answer_label(question: Question, answer: Optional[int]) -> Text:
    if answer is None:
        return Text("(no answer)", style="dim")
    label = Text(f"{_KEYS[answer]}) {question.options[answer]}")
    label.stylize("green" if question.is_correct(answer) else "red")
    return label


def _score_style(percentage: int) -> str:
    if percentage >= 80:
        return "bold green"
    if percentage >= 50:
        return "bold yellow"
    return "bold red"


def render_result(
    console: Console,
    result: QuizResult,
    *,
    show_explanations: Optional[bool] = None,
    result_id: Optional[str] = None,
) -> None:
    """Print the score overview and a per-question breakdown."""
    if show_explanations is None:
        show_explanations = result.settings.show_explanations

    console.print()
    console.rule(Text(result.title, style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(result.total_questions))
    answered = sum(1 for answer in result.answers if answer is not None)
    overview.add_row("Answered", str(answered))
    overview.add_row("Correct", str(result.score))
    overview.add_row(
        "Score",
        Text(f"{result.percentage}%", style=_score_style(result.percentage)),
    )
    if result_id:
        overview.add_row("Saved as", result_id)
    console.print(overview)

    details = Table(title="Answers", box=box.SIMPLE, expand=True)
    details.add_column("#", justify="right", style="cyan")
    details.add_column("Question")
    details.add_column("Your answer")
    details.add_column("Correct answer")
    for question, answer in zip(result.questions, result.answers):
        correct = question.correct_answer
        details.add_row(
            str(question.id),
            question.question,
            _answer_label(question, answer),
            f"{_KEYS[correct]}) {question.options[correct]}",
        )
    console.print(details)

    if show_explanations:
        for question in result.questions:
            if not question.explanation:
                continue
            console.print(
                Panel(
                    question.explanation,
                    title=f"Question {question.id}",
                    border_style="dim",
                    expand=False,
                )
            )


def render_record(console: Console, record: Mapping[str, Any]) -> None:
    """Print a stored result document."""
    questions = [Question.from_dict(item) for item in record.get("questions", [])]
    answers = list(record.get("answers", []))
    console.print()
    console.rule(Text(str(record.get("title", "Quiz")), style="bold magenta"))
    console.print(
        f"Score: {record.get('score', 0)}/{record.get('totalQuestions', 0)} "
        f"({record.get('percentage', 0)}%)  "
        f"Taken: {record.get('createdAt', '')}"
    )
    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Question")
    table.add_column("Your answer")
    for position, question in enumerate(questions):
        answer = answers[position] if position < len(answers) else None
        table.add_row(
            str(question.id), question.question, _answer_label(question, answer)
        )
    console.print(table)


def render_history(
    console: Console, entries: Sequence[QuizHistoryEntry]
) -> None:
    if not entries:
        console.print("[dim]No saved quizzes yet.[/]")
        return
    table = Table(title="Quiz history", box=box.SIMPLE, expand=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Score", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Taken")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.title,
            f"{entry.score}/{entry.total_questions}",
            Text(f"{entry.percentage}%", style=_score_style(entry.percentage)),
            entry.created_at,
        )
    console.print(table)
