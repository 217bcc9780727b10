"""TOML-backed configuration for study-quiz.

Defaults live in ``_DEFAULTS``; a user TOML file is merged on top (unknown
keys are rejected) and every value is validated into frozen dataclasses.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from . import workspace as workspace_mod


CONFIG_PATH_ENV = "STUDY_QUIZ_CONFIG"
CONFIG_FILENAME = "quiz.toml"

MAX_QUESTION_COUNT = 60
STORAGE_BACKENDS = ("documents", "local")


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class OpenAIConfig:
    model: str
    temperature: float
    max_output_tokens: int
    verify_max_tokens: int
    request_timeout_seconds: int
    api_base: Optional[str]


@dataclass(frozen=True)
class QuizDefaults:
    question_count: int
    seconds_per_question: int
    show_explanations: bool
    min_content_chars: int


@dataclass(frozen=True)
class StorageConfig:
    backend: str
    fallback_to_local: bool
    history_limit: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizConfig:
    openai: OpenAIConfig
    quiz: QuizDefaults
    storage: StorageConfig
    logging: LoggingConfig


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigError(
                    f"Expected table for '{dotted}', found "
                    f"{type(value).__name__}."
                )
            _merge_dict(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def _require_int_range(
    value: Any, *, field: str, min_value: int, max_value: int | None = None
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{field}' must be an integer.")
    if value < min_value or (max_value is not None and value > max_value):
        bound = f"between {min_value} and {max_value}" if max_value else (
            f">= {min_value}"
        )
        raise ConfigError(f"'{field}' must be {bound}.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _coerce_optional_string(value: Any, *, field: str) -> Optional[str]:
    if value is None:
        return None
    return _require_string(value, field=field)


def _build_openai(section: Mapping[str, Any]) -> OpenAIConfig:
    prefix = "providers.openai"
    return OpenAIConfig(
        model=_require_string(section.get("model"), field=f"{prefix}.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field=f"{prefix}.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=_require_int_range(
            section.get("max_output_tokens"),
            field=f"{prefix}.max_output_tokens",
            min_value=1,
        ),
        verify_max_tokens=_require_int_range(
            section.get("verify_max_tokens"),
            field=f"{prefix}.verify_max_tokens",
            min_value=1,
        ),
        request_timeout_seconds=_require_int_range(
            section.get("request_timeout_seconds"),
            field=f"{prefix}.request_timeout_seconds",
            min_value=1,
        ),
        api_base=_coerce_optional_string(
            section.get("api_base"), field=f"{prefix}.api_base"
        ),
    )


def _build_quiz(section: Mapping[str, Any]) -> QuizDefaults:
    return QuizDefaults(
        question_count=_require_int_range(
            section.get("question_count"),
            field="quiz.question_count",
            min_value=1,
            max_value=MAX_QUESTION_COUNT,
        ),
        seconds_per_question=_require_int_range(
            section.get("seconds_per_question"),
            field="quiz.seconds_per_question",
            min_value=1,
        ),
        show_explanations=_require_bool(
            section.get("show_explanations"), field="quiz.show_explanations"
        ),
        min_content_chars=_require_int_range(
            section.get("min_content_chars"),
            field="quiz.min_content_chars",
            min_value=0,
        ),
    )


def _build_storage(section: Mapping[str, Any]) -> StorageConfig:
    backend = _require_string(
        section.get("backend"), field="storage.backend"
    ).lower()
    if backend not in STORAGE_BACKENDS:
        raise ConfigError(
            "storage.backend must be one of: " + ", ".join(STORAGE_BACKENDS)
        )
    return StorageConfig(
        backend=backend,
        fallback_to_local=_require_bool(
            section.get("fallback_to_local"),
            field="storage.fallback_to_local",
        ),
        history_limit=_require_int_range(
            section.get("history_limit"),
            field="storage.history_limit",
            min_value=1,
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(section.get("level"), field="logging.level").upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(tree: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        openai=_build_openai(tree["providers"]["openai"]),
        quiz=_build_quiz(tree["quiz"]),
        storage=_build_storage(tree["storage"]),
        logging=_build_logging(tree["logging"]),
    )


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace_path: Optional[Path] = None,
) -> Path:
    """Return the config path: explicit, then env override, then workspace."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()
    env_override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if env_override:
        return Path(env_override).expanduser().resolve()
    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path, create=False
        )
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    workspace_path: Optional[Path] = None,
) -> QuizConfig:
    """Load and validate the configuration.

    A missing file is only an error when the path was given explicitly;
    otherwise the built-in defaults apply.
    """

    path = resolve_config_path(
        explicit_path=explicit_path, env=env, workspace_path=workspace_path
    )
    tree = default_tree()
    if path.exists() or explicit_path is not None:
        toml_data = _load_toml(path)
        _merge_dict(tree, toml_data)
    return _build_config(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    """Return the TOML template written by ``config init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as fh:
        fh.write(config_template())
    try:
        path.chmod(mode)
    except PermissionError:
        pass
    return path


_DEFAULTS: Dict[str, Any] = {
    "providers": {
        "openai": {
            "model": "gpt-4o-mini",
            "temperature": 0.3,
            "max_output_tokens": 4000,
            "verify_max_tokens": 20,
            "request_timeout_seconds": 60,
            "api_base": None,
        },
    },
    "quiz": {
        "question_count": 10,
        "seconds_per_question": 30,
        "show_explanations": True,
        "min_content_chars": 100,
    },
    "storage": {
        "backend": "documents",
        "fallback_to_local": True,
        "history_limit": 10,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# study-quiz configuration

[providers.openai]
model = "gpt-4o-mini"
# Low but nonzero so repeated runs differ slightly in wording
temperature = 0.3
# Enough room for the largest quiz (60 questions)
max_output_tokens = 4000
verify_max_tokens = 20
request_timeout_seconds = 60
# api_base = "https://api.openai.com/v1"

[quiz]
question_count = 10
seconds_per_question = 30
show_explanations = true
# Content shorter than this is rejected before generation
min_content_chars = 100

[storage]
# "documents" keeps one JSON file per result, "local" a single JSON list
backend = "documents"
fallback_to_local = true
history_limit = 10

[logging]
level = "INFO"
verbose = false
"""
