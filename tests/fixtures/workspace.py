"""Per-test data home with helpers for config, content and question files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence, Union

from study_quiz.core.workspace import WorkspaceLayout, ensure_workspace

SAMPLE_CONTENT = (
    "Photosynthesis converts light energy into chemical energy. Plants use "
    "chlorophyll to absorb light, water and carbon dioxide to produce glucose "
    "and oxygen. The light reactions happen in the thylakoid membranes while "
    "the Calvin cycle runs in the stroma."
)


@dataclass
class QuizWorkspace:
    """A data home rooted in pytest's tmp directory."""

    root: Path

    @property
    def home(self) -> Path:
        return self.root / "data-home"

    def layout(self) -> WorkspaceLayout:
        return ensure_workspace(path=self.home)

    def write(self, relative: Union[str, Path], content: Union[str, bytes]) -> Path:
        path = self.root / Path(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    def write_config(self, toml_text: str) -> Path:
        return self.write(Path("data-home") / "config" / "quiz.toml", toml_text)

    def write_content(self, text: str = SAMPLE_CONTENT) -> Path:
        return self.write("material.txt", text)

    def write_questions(
        self, questions: Sequence[Any], *, content: str = SAMPLE_CONTENT
    ) -> Path:
        document = {"content": content, "questions": list(questions)}
        return self.write("questions.json", json.dumps(document))
