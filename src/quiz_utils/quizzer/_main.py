import argparse
import asyncio
import logging
import sys
from importlib import resources
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from ..core.files import read_jsonl, write_jsonl
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError, ensure_workspace
from . import config as config_mod
from .controller import SessionController
from .errors import (
    AggregationError,
    FetchError,
    InvalidRecoveryError,
    InvalidSessionError,
    PersistenceError,
    SessionAbandonedError,
)
from .models import DEFAULT_TIERS
from .play import play_session
from .profile import JsonProfileStore
from .session import QuizSession
from .source import FileQuestionSource, HttpQuestionSource, QuestionSource
from .store import JsonFileSessionStore
from .view import render_stats, render_status

SAMPLE_BANK = "sample_questions.jsonl"


def _console() -> Console:
    return Console()


def _to_path(value: Optional[str]) -> Optional[Path]:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def _load(args: argparse.Namespace) -> config_mod.LoadResult:
    return config_mod.load_config(
        explicit_path=_to_path(getattr(args, "config", None)),
        workspace_path=_to_path(getattr(args, "workspace", None)),
    )


def _logger_for(load_result: config_mod.LoadResult) -> logging.Logger:
    logger, _ = configure_logger(
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.logging.level,
        verbose=load_result.config.logging.verbose,
    )
    return logger


def build_source(config: config_mod.QuizConfig) -> QuestionSource:
    if config.source.kind == "http":
        return HttpQuestionSource(
            config.source.base_url,
            timeout_seconds=config.source.timeout_seconds,
        )
    return FileQuestionSource(config.source.bank)


def build_controller(
    load_result: config_mod.LoadResult,
    *,
    logger: Optional[logging.Logger] = None,
) -> SessionController:
    layout = load_result.layout
    return SessionController(
        build_source(load_result.config),
        JsonFileSessionStore(layout.path_for("sessions")),
        JsonProfileStore(layout.path_for("profiles")),
        user_id=load_result.config.profile.user_id,
        logger=logger,
    )


def _seed_sample_bank(target: Path, *, overwrite: bool = False) -> bool:
    if target.exists() and not overwrite:
        return False
    resource = resources.files("quiz_utils.quizzer").joinpath(SAMPLE_BANK)
    with resources.as_file(resource) as sample_path:
        records = read_jsonl(sample_path)
    write_jsonl(target, records)
    return True


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        layout = ensure_workspace(path=_to_path(args.workspace))
    except WorkspaceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    config_path = layout.path_for("config") / config_mod.CONFIG_FILENAME
    if config_path.exists():
        config_note = "exists"
    else:
        config_mod.write_template(config_path)
        config_note = "created"
    lines = [
        f"Workspace ready at {layout.home}",
        f"Config: {config_path} ({config_note})",
    ]
    if args.sample:
        bank = layout.path_for("banks") / "questions.jsonl"
        seeded = _seed_sample_bank(bank, overwrite=args.force)
        status = "seeded" if seeded else "exists"
        lines.append(f"Question bank: {bank} ({status})")
    print("\n".join(lines))
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    if args.action == "init":
        try:
            layout = ensure_workspace(path=_to_path(args.workspace))
            path = config_mod.resolve_config_path(
                explicit_path=_to_path(args.config), layout=layout
            )
            config_mod.write_template(path, overwrite=args.force)
        except (WorkspaceError, config_mod.ConfigError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        print(f"Wrote config template -> {path}")
        return 0
    if args.action == "path":
        try:
            layout = ensure_workspace(path=_to_path(args.workspace))
        except WorkspaceError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        print(
            config_mod.resolve_config_path(
                explicit_path=_to_path(args.config), layout=layout
            )
        )
        return 0
    try:
        result = _load(args)
    except config_mod.ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    source = result.config.source
    origin = result.config_path or "built-in defaults"
    print(f"Config OK ({origin})")
    print(f"  source: {source.kind} ", end="")
    print(source.base_url if source.kind == "http" else source.bank)
    print(f"  user: {result.config.profile.user_id or '(anonymous)'}")
    return 0


async def _play(
    controller: SessionController,
    tier: str,
    console: Console,
    input_provider: Callable[[], str],
) -> int:
    try:
        session = await controller.start(tier)
    except FetchError as exc:
        console.print(f"[red]Could not load questions:[/] {exc}")
        return 1
    except InvalidSessionError:
        console.print(f"[red]No questions available for '{tier}'.[/]")
        return 1
    except SessionAbandonedError:
        return 1
    if controller.resumed:
        console.print(
            f"Resuming {tier} quiz at question {session.position}"
            f"/{session.total}."
        )
    await play_session(controller, console, input_provider)
    return 0


def _cmd_play(
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[Callable[[], str]] = None,
) -> int:
    try:
        load_result = _load(args)
    except config_mod.ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    logger = _logger_for(load_result)
    logger.debug("quiz play invoked", extra={"tier": args.tier})
    console = console or _console()
    if input_provider is None:
        input_provider = lambda: console.input("[bold]> [/]")  # noqa: E731
    controller = build_controller(load_result, logger=logger)
    return asyncio.run(_play(controller, args.tier, console, input_provider))


def _cmd_status(
    args: argparse.Namespace, *, console: Optional[Console] = None
) -> int:
    try:
        load_result = _load(args)
    except config_mod.ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    console = console or _console()
    store = JsonFileSessionStore(load_result.layout.path_for("sessions"))
    try:
        snapshot = store.get()
        session = (
            QuizSession.recover(snapshot, snapshot.get("difficulty"))
            if snapshot is not None
            else None
        )
    except (PersistenceError, InvalidRecoveryError) as exc:
        console.print(f"[red]Saved session is unreadable:[/] {exc}")
        return 1
    render_status(console, session)
    return 0


def _cmd_reset(args: argparse.Namespace) -> int:
    try:
        load_result = _load(args)
    except config_mod.ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    store = JsonFileSessionStore(load_result.layout.path_for("sessions"))
    try:
        store.clear()
    except PersistenceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print("Cleared saved quiz session.")
    return 0


def _cmd_stats(
    args: argparse.Namespace, *, console: Optional[Console] = None
) -> int:
    try:
        load_result = _load(args)
    except config_mod.ConfigError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    user_id = args.user or load_result.config.profile.user_id
    if not user_id:
        print(
            "No user configured. Set profile.user_id or pass --user.",
            file=sys.stderr,
        )
        return 2
    console = console or _console()
    profiles = JsonProfileStore(load_result.layout.path_for("profiles"))
    try:
        stats = asyncio.run(profiles.read_stats(user_id))
    except AggregationError as exc:
        console.print(f"[red]Could not read profile:[/] {exc}")
        return 1
    render_stats(console, user_id, stats)
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to quiz.toml")
    parser.add_argument(
        "--workspace",
        help="Workspace root (defaults to QUIZ_UTILS_DATA_HOME or "
        "~/.quiz-utils-data)",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quiz",
        description="Single-player multiple-choice quiz in the terminal",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser(
        "init", help="Create the workspace and a config template"
    )
    sp_init.add_argument("--workspace")
    sp_init.add_argument(
        "--sample",
        action="store_true",
        help="Seed the default question bank with sample questions",
    )
    sp_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing question bank when seeding",
    )

    sp_config = sub.add_parser("config", help="Manage quiz.toml")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_c_init = config_sub.add_parser("init", help="Write the config template")
    _add_common(sp_c_init)
    sp_c_init.add_argument("--force", action="store_true")
    _add_common(config_sub.add_parser("path", help="Print the config path"))
    _add_common(
        config_sub.add_parser("validate", help="Load and validate the config")
    )

    sp_play = sub.add_parser(
        "play", help="Play (or resume) a quiz for a difficulty tier"
    )
    sp_play.add_argument("tier", choices=DEFAULT_TIERS)
    _add_common(sp_play)

    _add_common(sub.add_parser("status", help="Show the saved quiz, if any"))
    _add_common(sub.add_parser("reset", help="Discard the saved quiz"))

    sp_stats = sub.add_parser("stats", help="Show cumulative profile stats")
    sp_stats.add_argument("--user", help="Profile to show")
    _add_common(sp_stats)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "config":
        return _cmd_config(args)
    if args.command == "play":
        return _cmd_play(args)
    if args.command == "status":
        return _cmd_status(args)
    if args.command == "reset":
        return _cmd_reset(args)
    if args.command == "stats":
        return _cmd_stats(args)
    parser.print_help()  # pragma: no cover - argparse enforces choices
    return 2


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
