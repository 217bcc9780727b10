"""Command-line entry point for study-quiz."""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.console import Console

from .core import ai as ai_mod
from .core import config as config_mod
from .core import workspace as workspace_mod
from .core.logging import configure_logger
from .quiz import models, report
from .quiz.errors import QuizError
from .quiz.generator import GenerationClient, check_key_format
from .quiz.validator import parse_questions
from .quiz.view import run_quiz
from .storage import KeyStore, StorageError, build_result_store
from .storage.keys import KEYS_FILENAME

logger = logging.getLogger("study_quiz.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-quiz",
        description="Generate and take timed multiple-choice quizzes.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to a config TOML (defaults to the workspace config).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log records to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser(
        "config", help="Manage the configuration file."
    )
    _build_config_subcommands(config_parser)

    key_parser = subparsers.add_parser("key", help="Manage the API key.")
    key_sub = key_parser.add_subparsers(dest="key_command", required=True)
    verify_parser = key_sub.add_parser(
        "verify", help="Verify an API key and remember it."
    )
    verify_parser.add_argument(
        "--key", help="Key to verify (defaults to stored or env key)."
    )
    key_sub.add_parser("clear", help="Forget the stored API key.")

    generate_parser = subparsers.add_parser(
        "generate", help="Generate a quiz from a study material file."
    )
    generate_parser.add_argument("content_file", help="UTF-8 text file.")
    generate_parser.add_argument(
        "--count",
        type=int,
        help=f"Number of questions (1-{models.MAX_QUESTIONS}).",
    )
    _add_timing_arguments(generate_parser)
    generate_parser.add_argument("--key", help="API key for this run.")
    generate_parser.add_argument(
        "--out", help="Write the generated questions to this JSON file."
    )
    generate_parser.add_argument(
        "--take",
        action="store_true",
        help="Start the quiz right after generation.",
    )
    generate_parser.add_argument(
        "--user", help="User the result is saved under."
    )

    take_parser = subparsers.add_parser(
        "take", help="Take a quiz from a questions JSON file."
    )
    take_parser.add_argument("questions_file")
    _add_timing_arguments(take_parser)
    take_parser.add_argument("--user", help="User the result is saved under.")

    history_parser = subparsers.add_parser(
        "history", help="List saved quiz results."
    )
    history_parser.add_argument("--user", help="Whose history to list.")
    history_parser.add_argument(
        "--limit", type=int, help="Maximum number of entries."
    )

    show_parser = subparsers.add_parser("show", help="Show a saved result.")
    show_parser.add_argument("result_id")

    delete_parser = subparsers.add_parser(
        "delete", help="Delete a saved result."
    )
    delete_parser.add_argument("result_id")

    return parser


def _add_timing_arguments(parser: argparse.ArgumentParser) -> None:
    timing = parser.add_mutually_exclusive_group()
    timing.add_argument(
        "--seconds", type=int, help="Seconds allowed per question."
    )
    timing.add_argument(
        "--custom-seconds",
        type=int,
        help=f"Custom seconds per question (at least {models.MIN_CUSTOM_SECONDS}).",
    )
    parser.add_argument(
        "--explanations",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show explanations after each answer.",
    )


def _build_config_subcommands(parent: argparse.ArgumentParser) -> None:
    subparsers = parent.add_subparsers(dest="config_command", required=True)

    init_parser = subparsers.add_parser(
        "init", help="Write the default configuration template."
    )
    init_parser.add_argument(
        "--path", type=str, help="Destination for the config TOML."
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file if present.",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Validate the active configuration file."
    )
    validate_parser.add_argument(
        "--path", type=str, help="Path to the config TOML."
    )

    subparsers.add_parser("path", help="Print the resolved config path.")


def _to_path(value: str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


def _console() -> Console:
    return Console()


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "anonymous"


def _build_generation_client(
    cfg: config_mod.QuizConfig,
) -> GenerationClient:
    return GenerationClient.from_config(cfg.openai)


def _key_store(layout: workspace_mod.WorkspaceLayout) -> KeyStore:
    return KeyStore(layout.path_for("config") / KEYS_FILENAME)


def _resolve_key(explicit: Optional[str], store: KeyStore) -> Optional[str]:
    if explicit and explicit.strip():
        return explicit.strip()
    return store.load() or ai_mod.key_from_env()


class _Context:
    """Config, workspace and logging shared by the runtime commands."""

    def __init__(self, args: argparse.Namespace) -> None:
        self.config = config_mod.load_config(explicit_path=_to_path(args.config))
        self.layout = workspace_mod.ensure_workspace()
        configure_logger(
            "study_quiz",
            log_dir=self.layout.path_for("logs"),
            level=self.config.logging.level,
            verbose=self.config.logging.verbose or args.verbose,
        )
        self.console = _console()


# config ---------------------------------------------------------------


def _handle_config(args: argparse.Namespace) -> int:
    command = args.config_command
    if command == "init":
        return _handle_config_init(args)
    if command == "validate":
        return _handle_config_validate(args)
    if command == "path":
        return _handle_config_path(args)
    raise RuntimeError(f"Unhandled config command: {command}")


def _handle_config_init(args: argparse.Namespace) -> int:
    explicit_path = _to_path(args.path or args.config)
    try:
        target = config_mod.resolve_config_path(explicit_path=explicit_path)
        config_mod.write_template(target, overwrite=args.force)
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    print(f"Wrote config template to {target}")
    return 0


def _handle_config_validate(args: argparse.Namespace) -> int:
    explicit_path = _to_path(args.path or args.config)
    try:
        cfg = config_mod.load_config(explicit_path=explicit_path)
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    print("Configuration OK")
    print(f"  model: {cfg.openai.model}")
    print(f"  question_count: {cfg.quiz.question_count}")
    print(f"  seconds_per_question: {cfg.quiz.seconds_per_question}")
    print(f"  storage: {cfg.storage.backend}")
    return 0


def _handle_config_path(args: argparse.Namespace) -> int:
    try:
        path = config_mod.resolve_config_path(explicit_path=_to_path(args.config))
    except config_mod.ConfigError as exc:
        _print_error(str(exc))
        return 2
    print(path)
    return 0


# key ------------------------------------------------------------------


def _handle_key(args: argparse.Namespace, ctx: _Context) -> int:
    store = _key_store(ctx.layout)
    if args.key_command == "clear":
        removed = store.clear()
        print("Stored API key removed." if removed else "No stored API key.")
        return 0

    key = _resolve_key(args.key, store)
    try:
        key = check_key_format(key)
        _build_generation_client(ctx.config).verify_key(key)
    except QuizError as exc:
        _print_error(str(exc))
        return 1
    store.save(key)
    ctx.console.print("[green]API key verified and saved.[/]")
    return 0


# generate / take ------------------------------------------------------


def _resolve_timing(
    args: argparse.Namespace, cfg: config_mod.QuizConfig
) -> tuple[int, bool]:
    if args.custom_seconds is not None:
        seconds = models.resolve_seconds(
            models.CUSTOM_SECONDS, args.custom_seconds
        )
    else:
        seconds = models.resolve_seconds(
            args.seconds
            if args.seconds is not None
            else cfg.quiz.seconds_per_question
        )
    explanations = (
        cfg.quiz.show_explanations
        if args.explanations is None
        else bool(args.explanations)
    )
    return seconds, explanations


def _handle_generate(args: argparse.Namespace, ctx: _Context) -> int:
    cfg = ctx.config
    source = Path(args.content_file).expanduser()
    try:
        content = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _print_error(f"Cannot read {source}: {exc}")
        return 2
    if len(content.strip()) < cfg.quiz.min_content_chars:
        _print_error(
            "Please provide at least "
            f"{cfg.quiz.min_content_chars} characters of content."
        )
        return 2

    store = _key_store(ctx.layout)
    api_key = _resolve_key(args.key, store)
    try:
        seconds, explanations = _resolve_timing(args, cfg)
        settings = models.QuizSettings(
            content=content,
            api_key=api_key or "",
            question_count=(
                args.count if args.count is not None else cfg.quiz.question_count
            ),
            seconds_per_question=seconds,
            show_explanations=explanations,
        )
        check_key_format(settings.api_key)
        settings.validate()
    except QuizError as exc:
        _print_error(str(exc))
        return 2

    client = _build_generation_client(cfg)
    try:
        with ctx.console.status("Generating questions..."):
            questions = client.generate(settings)
    except QuizError as exc:
        _print_error(str(exc))
        return 1
    try:
        store.save(settings.api_key)
    except StorageError as exc:
        logger.warning("Could not store API key", extra={"error": str(exc)})

    ctx.console.print(
        f"[green]Generated {len(questions)} of "
        f"{settings.question_count} requested questions.[/]"
    )
    if args.out:
        target = Path(args.out).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps(
                _questions_document(settings, questions),
                indent=2,
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        print(f"Wrote questions to {target}")
    if args.take or not args.out:
        return _take(ctx, questions, settings, args.user)
    return 0


def _questions_document(
    settings: models.QuizSettings, questions: models.QuestionSet
) -> dict[str, Any]:
    return {
        "content": settings.content,
        "questions": [question.to_dict() for question in questions],
    }


def _handle_take(args: argparse.Namespace, ctx: _Context) -> int:
    source = Path(args.questions_file).expanduser()
    try:
        raw = source.read_text(encoding="utf-8")
        document = json.loads(raw)
    except (OSError, UnicodeDecodeError) as exc:
        _print_error(f"Cannot read {source}: {exc}")
        return 2
    except json.JSONDecodeError as exc:
        _print_error(f"Invalid questions file {source}: {exc}")
        return 2

    content = ""
    items = document
    if isinstance(document, dict):
        content = str(document.get("content", ""))
        items = document.get("questions", [])
    if not isinstance(items, list) or not items:
        _print_error(f"No questions found in {source}.")
        return 2

    try:
        seconds, explanations = _resolve_timing(args, ctx.config)
        questions = parse_questions(
            json.dumps(items),
            requested_count=len(items),
            include_explanations=True,
        )
    except QuizError as exc:
        _print_error(str(exc))
        return 2

    settings = models.QuizSettings(
        content=content,
        api_key="",
        question_count=len(questions),
        seconds_per_question=seconds,
        show_explanations=explanations,
    )
    return _take(ctx, questions, settings, args.user)


def _take(
    ctx: _Context,
    questions: models.QuestionSet,
    settings: models.QuizSettings,
    user: Optional[str],
) -> int:
    result = run_quiz(questions, settings)
    if result is None:
        ctx.console.print("[yellow]Quiz ended before completion; nothing saved.[/]")
        return 0

    user_id = user or _default_user()
    store = build_result_store(ctx.config.storage, ctx.layout)
    result_id = None
    try:
        result_id = store.save(result, user_id)
        store.update_user_stats(user_id, result.score)
    except StorageError as exc:
        logger.error("Failed to save quiz result", extra={"error": str(exc)})
        ctx.console.print(f"[yellow]Result not saved: {exc}[/]")
    report.render_result(
        ctx.console,
        result,
        show_explanations=settings.show_explanations,
        result_id=result_id,
    )
    return 0


# history / show / delete ----------------------------------------------


def _handle_history(args: argparse.Namespace, ctx: _Context) -> int:
    limit = args.limit if args.limit is not None else ctx.config.storage.history_limit
    if limit < 1:
        _print_error("--limit must be at least 1.")
        return 2
    store = build_result_store(ctx.config.storage, ctx.layout)
    try:
        entries = store.history(args.user or _default_user(), limit)
    except StorageError as exc:
        _print_error(str(exc))
        return 1
    report.render_history(ctx.console, entries)
    return 0


def _handle_show(args: argparse.Namespace, ctx: _Context) -> int:
    store = build_result_store(ctx.config.storage, ctx.layout)
    try:
        record = store.get(args.result_id)
    except StorageError as exc:
        _print_error(str(exc))
        return 1
    if record is None:
        _print_error(f"No saved result '{args.result_id}'.")
        return 1
    report.render_record(ctx.console, record)
    return 0


def _handle_delete(args: argparse.Namespace, ctx: _Context) -> int:
    store = build_result_store(ctx.config.storage, ctx.layout)
    try:
        store.delete(args.result_id)
    except StorageError as exc:
        _print_error(str(exc))
        return 1
    print(f"Deleted result '{args.result_id}'.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:  # pragma: no cover - argparse already handles
        return int(exc.code or 0)

    if args.command == "config":
        return _handle_config(args)

    handlers = {
        "key": _handle_key,
        "generate": _handle_generate,
        "take": _handle_take,
        "history": _handle_history,
        "show": _handle_show,
        "delete": _handle_delete,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error("Command not implemented yet.")
        return 2

    try:
        ctx = _Context(args)
    except (config_mod.ConfigError, workspace_mod.WorkspaceError) as exc:
        _print_error(str(exc))
        return 2
    try:
        return handler(args, ctx)
    except StorageError as exc:
        _print_error(str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
