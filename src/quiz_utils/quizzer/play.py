"""Interactive console loop driving a started quiz session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from rich.console import Console

from .controller import SessionController
from .errors import QuizError
from .models import QuizResult
from .session import QuizSession
from .view import (
    render_explanation,
    render_feedback,
    render_question,
    render_result,
)

__all__ = [
    "InputProvider",
    "PlayCommand",
    "parse_play_command",
    "play_session",
]

InputProvider = Callable[[], str]


@dataclass(frozen=True)
class PlayCommand:
    """Normalized player command parsed from console input."""

    type: Literal["answer", "next", "explain", "quit"]
    choice: int | None = None


def parse_play_command(raw: str | None) -> PlayCommand | None:
    """Parse raw input; options are numbered from 1 on screen."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"n", "next"}:
        return PlayCommand("next")
    if text in {"e", "explain", "explanation"}:
        return PlayCommand("explain")
    if text in {"q", "quit", "exit"}:
        return PlayCommand("quit")
    if text.isdigit() and int(text) > 0:
        return PlayCommand("answer", int(text) - 1)
    return None


async def play_session(
    controller: SessionController,
    console: Console,
    input_provider: InputProvider,
) -> QuizResult | None:
    """Run the started session until it completes or the player leaves.

    Returns the final result, or ``None`` when the player quits; in that
    case the snapshot stays in the store so the next start resumes it.
    """

    session = controller.session
    if session is None:
        raise QuizError("Start a session before playing it.")

    render_question(console, session)
    while True:
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print(
                "\n[bold yellow]Session interrupted. Progress saved.[/]"
            )
            controller.abandon()
            return None
        command = parse_play_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print(
                "[bold yellow]Progress saved. Start the same difficulty "
                "again to resume.[/]"
            )
            controller.abandon()
            return None
        if command.type == "answer" and command.choice is not None:
            _handle_answer(controller, session, console, command.choice)
            continue
        if command.type == "explain":
            if not session.current.is_answered:
                console.print("[red]Answer the question first.[/]")
                continue
            render_explanation(console, session.current)
            continue
        if command.type == "next":
            if not session.current.is_answered:
                console.print("[red]Answer the question first.[/]")
                continue
            result = await controller.advance()
            if result is not None:
                render_result(console, result)
                return result
            render_question(console, session)


def _handle_answer(
    controller: SessionController,
    session: QuizSession,
    console: Console,
    choice: int,
) -> None:
    options = session.current.question.options
    if choice >= len(options):
        console.print(
            f"[red]'{choice + 1}' is not a valid option for this question.[/]"
        )
        return
    correct = controller.answer(choice)
    if correct is None:
        console.print("[yellow]This question has already been answered.[/]")
        return
    render_question(console, session)
    render_feedback(console, session, correct)
