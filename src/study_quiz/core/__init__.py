"""Core shared helpers for study-quiz."""

from __future__ import annotations

from .ai import key_from_env, load_client
from .config import ConfigError, QuizConfig, load_config
from .logging import JsonLogFormatter, configure_logger, mask_secret
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "key_from_env",
    "load_client",
    "ConfigError",
    "QuizConfig",
    "load_config",
    "JsonLogFormatter",
    "configure_logger",
    "mask_secret",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
