from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import (  # noqa: E402
    FakeCapability,
    FakeOpenAIFactory,
    QuizWorkspace,
)

from study_quiz.core import ai as ai_mod  # noqa: E402
from study_quiz.core import config as config_mod  # noqa: E402
from study_quiz.core import workspace as workspace_mod  # noqa: E402


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> FakeOpenAIFactory:
    """Replace the OpenAI client class with a recording fake."""

    factory = FakeOpenAIFactory()
    monkeypatch.setattr(ai_mod, "OpenAI", factory)
    return factory


@pytest.fixture
def capability() -> FakeCapability:
    return FakeCapability()


@pytest.fixture
def quiz_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> QuizWorkspace:
    """Point the data home at tmp_path and clear related env vars."""

    ws = QuizWorkspace(tmp_path)
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(ws.home))
    monkeypatch.delenv(config_mod.CONFIG_PATH_ENV, raising=False)
    monkeypatch.delenv(ai_mod.API_KEY_ENV, raising=False)
    return ws


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("study_quiz")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
