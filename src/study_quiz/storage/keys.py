"""Remember a verified API key between runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from study_quiz.core.logging import mask_secret

from .files import (
    FileLock,
    StorageError,
    atomic_write_json,
    ensure_dir,
    read_json,
)

__all__ = ["KEYS_FILENAME", "KeyStore"]

logger = logging.getLogger(__name__)

KEYS_FILENAME = "keys.json"
_FIELD = "openai_api_key"


class KeyStore:
    """Persist one API key in a private JSON file (mode 0600)."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[str]:
        try:
            data = read_json(self._path, default={})
        except StorageError as exc:
            logger.warning(
                "Ignoring unreadable key store", extra={"error": str(exc)}
            )
            return None
        if not isinstance(data, dict):
            return None
        value = data.get(_FIELD)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def save(self, api_key: str) -> None:
        key = (api_key or "").strip()
        if not key:
            raise StorageError("Refusing to store an empty API key.")
        ensure_dir(self._path.parent)
        with FileLock(self._path.with_name(self._path.name + ".lock")):
            atomic_write_json(self._path, {_FIELD: key}, mode=0o600)
        logger.info("Stored API key", extra={"key": mask_secret(key)})

    def clear(self) -> bool:
        """Forget the stored key. Returns True if one was removed."""
        if not self._path.exists():
            return False
        try:
            self._path.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to remove {self._path}: {exc}") from exc
        logger.info("Cleared stored API key")
        return True
