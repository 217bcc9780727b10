"""Small JSON file helpers shared by the stores."""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any

__all__ = [
    "StorageError",
    "FileLock",
    "ensure_dir",
    "atomic_write_json",
    "read_json",
]

_LOCK_TIMEOUT_SECONDS = 5.0


class StorageError(RuntimeError):
    """Raised when a store cannot read or write its files."""


class FileLock:
    """Filesystem lock using exclusive file creation."""

    def __init__(self, path: Path, *, timeout: float = _LOCK_TIMEOUT_SECONDS):
        self._path = path
        self._timeout = timeout

    def __enter__(self) -> "FileLock":
        deadline = time.time() + self._timeout
        while True:
            try:
                fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.close(fd)
                return self
            except FileExistsError:
                if time.time() > deadline:
                    raise StorageError(
                        f"Timed out waiting for lock: {self._path}"
                    )
                time.sleep(0.05)
            except OSError as exc:
                raise StorageError(f"Cannot create lock {self._path}: {exc}") from exc

    def __exit__(self, exc_type, exc, tb) -> None:
        self._path.unlink(missing_ok=True)


def ensure_dir(path: Path) -> Path:
    """Create ``path`` (and parents) or raise :class:`StorageError`."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(f"Cannot create directory {path}: {exc}") from exc
    return path


def atomic_write_json(path: Path, payload: Any, *, mode: int = 0o600) -> None:
    """Write ``payload`` to a temp file next to ``path`` and swap it in."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            delete=False,
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        finally:
            handle.close()
        os.replace(handle.name, path)
    except OSError as exc:
        raise StorageError(f"Failed to write {path}: {exc}") from exc
    try:
        path.chmod(mode)
    except PermissionError:
        pass


def read_json(path: Path, *, default: Any = None) -> Any:
    """Return the decoded JSON at ``path`` or ``default`` if it is missing."""
    if not path.is_file():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise StorageError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Failed to read {path}: {exc}") from exc
