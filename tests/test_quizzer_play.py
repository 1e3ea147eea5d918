from __future__ import annotations

import asyncio
from typing import List, Optional

import pytest
from rich.console import Console

from fixtures import make_question, make_questions
from quiz_utils.quizzer.controller import SessionController
from quiz_utils.quizzer.errors import QuizError
from quiz_utils.quizzer.models import Question, QuizResult
from quiz_utils.quizzer.play import (
    PlayCommand,
    parse_play_command,
    play_session,
)
from quiz_utils.quizzer.profile import MemoryProfileStore
from quiz_utils.quizzer.store import MemorySessionStore


class ListSource:
    def __init__(self, questions: List[Question]) -> None:
        self.questions = questions

    async def fetch(self, tier: str) -> List[Question]:
        return list(self.questions)


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def _play(
    commands: list[str],
    questions: Optional[List[Question]] = None,
    store: Optional[MemorySessionStore] = None,
):
    console = Console(record=True, width=80, force_terminal=True)
    controller = SessionController(
        ListSource(questions or make_questions(2)),
        store if store is not None else MemorySessionStore(),
        MemoryProfileStore(),
    )

    async def scenario():
        await controller.start("medium")
        return await play_session(
            controller, console, make_provider(commands)
        )

    result = asyncio.run(scenario())
    return result, console.export_text(), controller


def test_parse_play_command_variants() -> None:
    assert parse_play_command("1") == PlayCommand("answer", 0)
    assert parse_play_command(" 3 ") == PlayCommand("answer", 2)
    assert parse_play_command("N") == PlayCommand("next")
    assert parse_play_command("explain") == PlayCommand("explain")
    assert parse_play_command("e") == PlayCommand("explain")
    assert parse_play_command("exit") == PlayCommand("quit")
    assert parse_play_command("0") is None
    assert parse_play_command("-1") is None
    assert parse_play_command("") is None
    assert parse_play_command(None) is None
    assert parse_play_command("maybe") is None


def test_play_session_full_flow() -> None:
    questions = [
        make_question("q1", explanation="Because A comes first."),
        make_question("q2", text="Last one?"),
    ]
    commands = ["x", "n", "9", "2", "2", "e", "n", "1", "n"]

    result, output, _ = _play(commands, questions)

    assert result == QuizResult(score=1, total=2)
    assert "Question 1 / 2" in output
    assert "Unrecognized command" in output
    assert "Answer the question first." in output
    assert "'9' is not a valid option" in output
    assert "Incorrect" in output
    assert "The correct answer is: A" in output
    assert "already been answered" in output
    assert "Because A comes first." in output
    assert "Question 2 / 2" in output
    assert "That was the last question!" in output
    assert "Quiz Complete" in output
    assert "1 / 2" in output
    assert "50.0%" in output


def test_play_session_explanation_fallback() -> None:
    result, output, _ = _play(["1", "e", "n"], [make_question("solo")])

    assert result == QuizResult(score=1, total=1)
    assert "No explanation available." in output
    assert "Correct!" in output


def test_play_session_quit_keeps_progress() -> None:
    store = MemorySessionStore()
    result, output, controller = _play(["1", "n", "q"], store=store)

    assert result is None
    assert "Start the same difficulty again to resume" in output
    assert controller.session is None
    snapshot = store.get()
    assert snapshot is not None
    assert snapshot["current_index"] == 1


def test_play_session_interrupted_by_end_of_input() -> None:
    store = MemorySessionStore()
    result, output, controller = _play(["1"], store=store)

    assert result is None
    assert "Session interrupted. Progress saved." in output
    assert store.get() is not None


def test_play_session_requires_started_session() -> None:
    controller = SessionController(
        ListSource([]), MemorySessionStore(), MemoryProfileStore()
    )
    console = Console(record=True, width=80, force_terminal=True)

    with pytest.raises(QuizError):
        asyncio.run(play_session(controller, console, make_provider([])))
