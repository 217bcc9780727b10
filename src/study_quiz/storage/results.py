"""Quiz result persistence.

Two interchangeable backends implement :class:`ResultStore`:

* :class:`DocumentResultStore` keeps one JSON document per result (plus
  per-user stats documents) under the workspace.
* :class:`LocalResultStore` keeps every result in one JSON list file.

:func:`build_result_store` picks one from configuration and optionally wraps
it in :class:`FallbackResultStore` so a failing primary degrades to the local
file instead of losing the result. Saves are best effort.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import (
    Any,
    Callable,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Protocol,
    TypeVar,
)

from study_quiz.core.config import StorageConfig
from study_quiz.core.workspace import WorkspaceLayout
from study_quiz.quiz.models import QuizHistoryEntry, QuizResult

from .files import (
    FileLock,
    StorageError,
    atomic_write_json,
    ensure_dir,
    read_json,
)

__all__ = [
    "LOCAL_RESULTS_FILENAME",
    "ResultStore",
    "DocumentResultStore",
    "LocalResultStore",
    "FallbackResultStore",
    "build_result_store",
]

logger = logging.getLogger(__name__)

LOCAL_RESULTS_FILENAME = "quiz-results.json"
_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

T = TypeVar("T")


class ResultStore(Protocol):
    """Persistence collaborator for finished quizzes."""

    def save(self, result: QuizResult, user_id: str) -> str:
        """Persist ``result`` and return its identifier."""

    def history(self, user_id: str, limit: int = 10) -> List[QuizHistoryEntry]:
        """Return up to ``limit`` summaries for ``user_id``, newest first."""

    def get(self, result_id: str) -> Optional[MutableMapping[str, Any]]:
        """Return the stored document or None."""

    def delete(self, result_id: str) -> None:
        """Remove a stored result; unknown ids are ignored."""

    def update_user_stats(self, user_id: str, score: int) -> None:
        """Bump the quiz count and total score for ``user_id``."""


def _new_id() -> str:
    return uuid.uuid4().hex


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _newest_first(
    records: List[Mapping[str, Any]], user_id: str, limit: int
) -> List[QuizHistoryEntry]:
    mine = [r for r in records if str(r.get("userId")) == user_id]
    mine.sort(key=lambda r: str(r.get("createdAt", "")), reverse=True)
    return [
        QuizHistoryEntry.from_record(str(r.get("id", "")), r)
        for r in mine[: max(0, limit)]
    ]


def _slug(value: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", value.strip()).strip("-")
    return cleaned or "anonymous"


class DocumentResultStore:
    """One JSON document per result under ``results_dir``."""

    def __init__(self, results_dir: Path, users_dir: Path) -> None:
        self._results = results_dir
        self._users = users_dir

    def _path_for(self, result_id: str) -> Path:
        if not _ID_RE.match(result_id or ""):
            raise StorageError(f"Invalid result id: {result_id!r}")
        return self._results / f"{result_id}.json"

    def save(self, result: QuizResult, user_id: str) -> str:
        result_id = _new_id()
        record = dict(result.to_record(user_id))
        record["id"] = result_id
        ensure_dir(self._results)
        with FileLock(self._results / ".lock"):
            atomic_write_json(self._path_for(result_id), record)
        logger.info(
            "Saved quiz result",
            extra={"result_id": result_id, "backend": "documents"},
        )
        return result_id

    def history(self, user_id: str, limit: int = 10) -> List[QuizHistoryEntry]:
        if not self._results.is_dir():
            return []
        records: List[Mapping[str, Any]] = []
        for path in sorted(self._results.glob("*.json")):
            try:
                payload = read_json(path)
            except StorageError as exc:
                logger.warning(
                    "Skipping unreadable result document",
                    extra={"path": path, "error": str(exc)},
                )
                continue
            if isinstance(payload, dict):
                payload.setdefault("id", path.stem)
                records.append(payload)
        return _newest_first(records, user_id, limit)

    def get(self, result_id: str) -> Optional[MutableMapping[str, Any]]:
        payload = read_json(self._path_for(result_id))
        return payload if isinstance(payload, dict) else None

    def delete(self, result_id: str) -> None:
        path = self._path_for(result_id)
        with FileLock(self._results / ".lock"):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Failed to delete {path}: {exc}") from exc
        logger.info("Deleted quiz result", extra={"result_id": result_id})

    def update_user_stats(self, user_id: str, score: int) -> None:
        path = self._users / f"{_slug(user_id)}.json"
        ensure_dir(self._users)
        with FileLock(self._users / ".lock"):
            stats = read_json(path, default={}) or {}
            stats["userId"] = user_id
            stats["quizCount"] = int(stats.get("quizCount", 0)) + 1
            stats["totalScore"] = int(stats.get("totalScore", 0)) + int(score)
            stats["lastQuizAt"] = _timestamp()
            atomic_write_json(path, stats)

    def user_stats(self, user_id: str) -> MutableMapping[str, Any]:
        path = self._users / f"{_slug(user_id)}.json"
        return read_json(path, default={}) or {}


class LocalResultStore:
    """All results in a single JSON list file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> List[MutableMapping[str, Any]]:
        data = read_json(self._path, default=[])
        if not isinstance(data, list):
            raise StorageError(f"Expected a JSON list in {self._path}")
        return [item for item in data if isinstance(item, dict)]

    def _lock(self) -> FileLock:
        ensure_dir(self._path.parent)
        return FileLock(self._path.with_name(self._path.name + ".lock"))

    def save(self, result: QuizResult, user_id: str) -> str:
        result_id = _new_id()
        record = dict(result.to_record(user_id))
        record["id"] = result_id
        with self._lock():
            records = self._load()
            records.append(record)
            atomic_write_json(self._path, records)
        logger.info(
            "Saved quiz result",
            extra={"result_id": result_id, "backend": "local"},
        )
        return result_id

    def history(self, user_id: str, limit: int = 10) -> List[QuizHistoryEntry]:
        return _newest_first(list(self._load()), user_id, limit)

    def get(self, result_id: str) -> Optional[MutableMapping[str, Any]]:
        for record in self._load():
            if str(record.get("id")) == result_id:
                return record
        return None

    def delete(self, result_id: str) -> None:
        with self._lock():
            records = self._load()
            kept = [r for r in records if str(r.get("id")) != result_id]
            if len(kept) != len(records):
                atomic_write_json(self._path, kept)

    def update_user_stats(self, user_id: str, score: int) -> None:
        logger.debug(
            "User stats are not tracked by the local store",
            extra={"user_id": user_id, "score": score},
        )


class FallbackResultStore:
    """Use ``primary`` and repeat the call on ``fallback`` if it fails."""

    def __init__(self, primary: ResultStore, fallback: ResultStore) -> None:
        self.primary = primary
        self.fallback = fallback

    def _call(self, action: str, func: Callable[[ResultStore], T]) -> T:
        try:
            return func(self.primary)
        except StorageError as exc:
            logger.warning(
                "Primary result store failed; using local fallback",
                extra={"action": action, "error": str(exc)},
            )
            return func(self.fallback)

    def save(self, result: QuizResult, user_id: str) -> str:
        return self._call("save", lambda store: store.save(result, user_id))

    def history(self, user_id: str, limit: int = 10) -> List[QuizHistoryEntry]:
        return self._call(
            "history", lambda store: store.history(user_id, limit)
        )

    def get(self, result_id: str) -> Optional[MutableMapping[str, Any]]:
        return self._call("get", lambda store: store.get(result_id))

    def delete(self, result_id: str) -> None:
        self._call("delete", lambda store: store.delete(result_id))

    def update_user_stats(self, user_id: str, score: int) -> None:
        try:
            self.primary.update_user_stats(user_id, score)
        except StorageError as exc:
            logger.warning(
                "Could not update user stats",
                extra={"user_id": user_id, "error": str(exc)},
            )


def build_result_store(
    config: StorageConfig, layout: WorkspaceLayout
) -> ResultStore:
    """Select the configured backend for ``layout``."""
    local = LocalResultStore(layout.path_for("results") / LOCAL_RESULTS_FILENAME)
    if config.backend == "local":
        return local
    documents = DocumentResultStore(
        layout.path_for("results") / "documents", layout.path_for("users")
    )
    if config.fallback_to_local:
        return FallbackResultStore(documents, local)
    return documents
