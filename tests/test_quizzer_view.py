from __future__ import annotations

from rich.console import Console

from fixtures import make_questions, snapshot_for
from quiz_utils.quizzer.profile import ProfileStats
from quiz_utils.quizzer.session import QuizSession
from quiz_utils.quizzer.view import (
    render_question,
    render_stats,
    render_status,
)


def _console() -> Console:
    return Console(record=True, width=80, force_terminal=True)


def test_render_question_numbers_options() -> None:
    console = _console()
    session = QuizSession.fresh(make_questions(3), "easy")

    render_question(console, session)

    output = console.export_text()
    assert "Question 1 / 3" in output
    assert "Question q1?" in output
    assert "1-3 (answer)" in output
    assert "Score 0" in output


def test_render_question_marks_answers() -> None:
    console = _console()
    session = QuizSession.fresh(make_questions(1), "easy")
    session.answer(1)

    render_question(console, session)

    output = console.export_text()
    assert "❌" in output
    assert "e (explanation), n (next)" in output


def test_render_status_with_and_without_session() -> None:
    console = _console()
    render_status(console, None)
    session = QuizSession.recover(
        snapshot_for([0, 2, None], current_index=2), "medium"
    )
    render_status(console, session)

    output = console.export_text()
    assert "No quiz in progress." in output
    assert "Quiz in progress" in output
    assert "medium" in output
    assert "3 / 3" in output


def test_render_stats_table() -> None:
    console = _console()
    render_stats(console, "ana", ProfileStats(4, 10, 2.5))

    output = console.export_text()
    assert "Profile: ana" in output
    assert "Games played" in output
    assert "2.50" in output
