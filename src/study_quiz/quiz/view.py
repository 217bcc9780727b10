"""Terminal UI for taking a quiz, built on Textual.

The app is a thin shell over :class:`~.runner.QuizRunner`: a one second
interval drives the countdown and key bindings map onto runner transitions.
"""

from __future__ import annotations

from typing import Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.css.query import NoMatches
from textual.widgets import Button, Static

from .models import Question, QuizResult, QuizSettings
from .runner import QuizPhase, QuizRunner

__all__ = ["OPTION_KEYS", "QuizApp", "run_quiz"]

OPTION_KEYS = ("A", "B", "C", "D")


class QuizApp(App):
    CSS = """
#options Button.selected { background: $accent; color: black; }
#options Button.correct { background: $success; }
#options Button.wrong { background: $error; }
#timer { color: $warning; }
#feedback { margin-top: 1; }
"""
    BINDINGS = [
        ("a", "select(0)", "A"),
        ("b", "select(1)", "B"),
        ("c", "select(2)", "C"),
        ("d", "select(3)", "D"),
        ("1", "select(0)", "A"),
        ("2", "select(1)", "B"),
        ("3", "select(2)", "C"),
        ("4", "select(3)", "D"),
        ("enter", "submit", "Submit"),
        ("s", "submit", "Submit"),
        ("n", "next", "Next"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self, questions: Sequence[Question], settings: QuizSettings
    ) -> None:
        super().__init__()
        self._quiz_settings = settings
        self._quiz_runner = QuizRunner(
            questions, settings, on_complete=self._handle_complete
        )
        self._quiz_result: Optional[QuizResult] = None

    @property
    def runner(self) -> QuizRunner:
        return self._quiz_runner

    @property
    def result(self) -> Optional[QuizResult]:
        return self._quiz_result

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield Static(self.header_text(), id="header")
            yield Static(self.timer_text(), id="timer")
            yield Static(self._quiz_runner.current.question, id="question")
            with Vertical(id="options"):
                for index in range(len(OPTION_KEYS)):
                    yield Button(self.option_label(index), id=f"option-{index}")
            yield Static(self.feedback_text(), id="feedback")
            yield Static(self.hint_text(), id="hint")

    def on_mount(self) -> None:
        self.set_interval(1.0, self._on_tick)
        self._refresh()

    # Pure helpers (usable without a running app)
    def header_text(self) -> str:
        state = self._quiz_runner.state
        total = len(self._quiz_runner.questions)
        return f"Question {state.index + 1} of {total}"

    def timer_text(self) -> str:
        return f"Time left: {self._quiz_runner.state.remaining_seconds}s"

    def option_label(self, index: int) -> str:
        option = self._quiz_runner.current.options[index]
        return f"{OPTION_KEYS[index]}) {option}"

    def option_classes(self, index: int) -> set[str]:
        """CSS classes for one option button in the current phase."""
        state = self._quiz_runner.state
        question = self._quiz_runner.current
        classes: set[str] = set()
        if state.phase is QuizPhase.ANSWERING:
            if state.selected == index:
                classes.add("selected")
            return classes
        answer = state.answers[state.index]
        if index == question.correct_answer:
            classes.add("correct")
        elif answer == index:
            classes.add("wrong")
        return classes

    def feedback_text(self) -> str:
        state = self._quiz_runner.state
        if state.phase is not QuizPhase.FEEDBACK:
            return ""
        question = self._quiz_runner.current
        answer = state.answers[state.index]
        correct_key = OPTION_KEYS[question.correct_answer]
        if answer is None:
            text = f"Time's up! The correct answer was {correct_key}."
        elif question.is_correct(answer):
            text = "Correct!"
        else:
            text = f"Incorrect. The correct answer was {correct_key}."
        if self._quiz_settings.show_explanations and question.explanation:
            text = f"{text}\n{question.explanation}"
        return text

    def hint_text(self) -> str:
        if self._quiz_runner.phase is QuizPhase.FEEDBACK:
            label = (
                "finish" if self._quiz_runner.is_last_question else "next question"
            )
            return f"Press n for the {label}."
        return "Choose with a-d (or 1-4), submit with Enter."

    def action_select(self, index: int) -> None:
        if self._quiz_runner.select_answer(index):
            self._refresh()

    def action_submit(self) -> None:
        if self._quiz_runner.submit_answer():
            self._refresh()

    def action_next(self) -> None:
        if not self._quiz_runner.advance():
            return
        if self._quiz_runner.phase is not QuizPhase.COMPLETED:
            self._refresh()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("option-"):
            self.action_select(int(button_id.rsplit("-", 1)[1]))

    def _on_tick(self) -> None:
        self._quiz_runner.tick()
        self._refresh()

    def _handle_complete(self, result: QuizResult) -> None:
        self._quiz_result = result
        if self.is_running:
            self.exit(result)

    def _refresh(self) -> None:
        if not self.is_running or self._quiz_runner.phase is QuizPhase.COMPLETED:
            return
        try:
            self.query_one("#header", Static).update(self.header_text())
            self.query_one("#timer", Static).update(self.timer_text())
            self.query_one("#question", Static).update(
                self._quiz_runner.current.question
            )
            for index in range(len(OPTION_KEYS)):
                button = self.query_one(f"#option-{index}", Button)
                button.label = self.option_label(index)
                classes = self.option_classes(index)
                for name in ("selected", "correct", "wrong"):
                    button.set_class(name in classes, name)
            self.query_one("#feedback", Static).update(self.feedback_text())
            self.query_one("#hint", Static).update(self.hint_text())
        except NoMatches:
            return


def run_quiz(
    questions: Sequence[Question], settings: QuizSettings
) -> Optional[QuizResult]:
    """Run the interactive quiz and return the result (None if quit early)."""
    app = QuizApp(questions, settings)
    app.run()
    return app.result
