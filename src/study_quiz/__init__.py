"""Generate timed multiple-choice quizzes from study material."""

__version__ = "0.1.0"
