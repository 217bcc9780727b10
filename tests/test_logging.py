from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from study_quiz.core.logging import JsonLogFormatter, configure_logger, mask_secret


def _read_lines(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines() if line]


def test_configure_logger_writes_json_lines_with_extras(tmp_path: Path):
    logger, log_path = configure_logger("study_quiz", log_dir=tmp_path)
    assert log_path == tmp_path / "study_quiz.log"

    logging.getLogger("study_quiz.quiz.validator").warning(
        "Dropping candidate", extra={"position": 3, "path": tmp_path}
    )
    logger.debug("filtered at INFO")
    for handler in logger.handlers:
        handler.flush()

    (entry,) = _read_lines(log_path)
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "study_quiz.quiz.validator"
    assert entry["message"] == "Dropping candidate"
    assert entry["extra"] == {"position": 3, "path": str(tmp_path)}


def test_configure_logger_is_idempotent_and_toggles_console(tmp_path: Path):
    logger, _ = configure_logger("study_quiz", log_dir=tmp_path, verbose=True)
    assert len(logger.handlers) == 2
    logger, _ = configure_logger("study_quiz", log_dir=tmp_path, verbose=True)
    assert len(logger.handlers) == 2
    logger, _ = configure_logger("study_quiz", log_dir=tmp_path)
    assert len(logger.handlers) == 1


def test_formatter_includes_exception_text():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("x").makeRecord(
            "x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )
    payload = json.loads(JsonLogFormatter().format(record))
    assert "ValueError: boom" in payload["exception"]
    assert "extra" not in payload


def test_mask_secret():
    assert mask_secret("sk-1234567890abcd") == "sk-1...abcd"
    assert mask_secret("short") == "*****"
    assert mask_secret(None) == ""
