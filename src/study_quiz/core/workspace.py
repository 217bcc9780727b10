"""Workspace bootstrap helpers for study-quiz.

Config, logs and stored quiz results all live under one data home so that the
CLI and the storage backends agree on where things are.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping


WORKSPACE_ENV = "STUDY_QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".study-quiz-data"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
    "results": "results",
    "users": "users",
}


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths."""

    home: Path
    directories: Mapping[str, Path]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise WorkspaceError(f"Unknown workspace directory '{key}'.") from exc


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the data home and optionally create its subdirectories.

    When the default location is not writable the temp directory is tried
    next. Explicit overrides (``path`` or the environment variable) never
    fall back silently.
    """

    env_map = os.environ if env is None else env
    base, overridden = _resolve_base(env_map, override=path)

    candidates = [base]
    if create and not overridden:
        fallback = Path(tempfile.gettempdir()) / "study-quiz-data"
        if fallback != base:
            candidates.append(fallback)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize(candidate, create=create)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(f"Unable to prepare workspace at {base}") from last_error


def _resolve_base(
    env: Mapping[str, str], *, override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        return Path(override).expanduser().absolute(), True
    custom = (env.get(WORKSPACE_ENV) or "").strip()
    if custom:
        return Path(custom).expanduser().absolute(), True
    return DEFAULT_WORKSPACE, False


def _materialize(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )
    if create:
        _ensure_dir(base)

    directories: MutableMapping[str, Path] = {}
    for key, relative in _SUBDIRS.items():
        candidate = base / relative
        if create:
            _ensure_dir(candidate)
        elif candidate.exists() and not candidate.is_dir():
            raise WorkspaceError(
                f"Expected workspace directory for '{key}' but found a file: "
                f"{candidate}"
            )
        directories[key] = candidate

    return WorkspaceLayout(
        home=base, directories=MappingProxyType(dict(directories))
    )


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as exc:
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        ) from exc
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
