"""Rich renderers for questions, answer feedback, results and profile stats."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import AnsweredQuestion, QuizResult
from .profile import ProfileStats
from .session import QuizSession

__all__ = [
    "render_question",
    "render_feedback",
    "render_explanation",
    "render_result",
    "render_stats",
    "render_status",
]


def render_question(console: Console, session: QuizSession) -> None:
    item = session.current
    header = Text.assemble(
        (f"Question {session.position}", "bold cyan"),
        (f" / {session.total}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(item.question.text, style="bold"))
    console.print(_options_table(item))
    if item.is_answered:
        hint = "Commands: e (explanation), n (next), quit"
    else:
        hint = f"Commands: 1-{len(item.question.options)} (answer), quit"
    console.print(
        Text(f"Score {session.score} | {hint}", style="dim"),
    )


def _options_table(item: AnsweredQuestion) -> Table:
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Option")
    correct = item.question.correct_answer
    for index, option in enumerate(item.question.options):
        text = Text(option)
        marker = " "
        if item.is_answered:
            if index == correct:
                text.stylize("bold green")
                marker = "✅" if index == item.user_answer else "•"
            elif index == item.user_answer:
                text.stylize("bold red")
                marker = "❌"
        table.add_row(str(index + 1), Text(marker + " ") + text)
    return table


def render_feedback(
    console: Console, session: QuizSession, correct: bool
) -> None:
    question = session.current.question
    if correct:
        title = "Correct!"
        if session.is_last:
            body = "That was the last question!"
        else:
            body = "On to the next question!"
        border = "green"
    else:
        title = "Incorrect"
        body = f"The correct answer is: {question.correct_option}"
        border = "red"
    console.print(Panel(body, title=title, border_style=border))


def render_explanation(console: Console, item: AnsweredQuestion) -> None:
    text = item.question.explanation or "No explanation available."
    console.print(Panel(text, title="Explanation", border_style="blue"))


def render_result(console: Console, result: QuizResult) -> None:
    console.print()
    console.rule(Text("Quiz Complete", style="bold magenta"))
    overview = Table(
        show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", f"{result.score} / {result.total}")
    overview.add_row("Accuracy", f"{result.accuracy * 100:.1f}%")
    console.print(overview)


def render_stats(console: Console, user_id: str, stats: ProfileStats) -> None:
    table = Table(title=f"Profile: {user_id}", box=box.SIMPLE, expand=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Games played", str(stats.total_games))
    table.add_row("Total score", str(stats.total_score))
    table.add_row("Average score", f"{stats.average_score:.2f}")
    console.print(table)


def render_status(console: Console, session: QuizSession | None) -> None:
    if session is None:
        console.print("No quiz in progress.")
        return
    table = Table(title="Quiz in progress", box=box.SIMPLE, expand=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Difficulty", session.difficulty)
    table.add_row("Question", f"{session.position} / {session.total}")
    table.add_row("Answered", str(session.answered_count()))
    table.add_row("Score", str(session.score))
    console.print(table)
