"""Quiz session state machine.

A session walks an ordered list of questions one at a time. Each question
accepts exactly one answer, the running score is a projection of the answer
record, and the session completes once the final answered question is
advanced past. Sessions are created fresh from a question source or
recovered from a persisted snapshot; recovery always recounts the score from
the recorded answers instead of trusting the stored value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Callable, Literal

from .errors import InvalidRecoveryError, InvalidSessionError
from .models import AnsweredQuestion, Question, QuizResult

__all__ = [
    "SNAPSHOT_VERSION",
    "AdvanceOutcome",
    "ChangeListener",
    "QuizSession",
    "SessionState",
]

SNAPSHOT_VERSION = 1

SessionState = Literal["active", "completed"]
AdvanceOutcome = Literal["advanced", "completed", "ignored"]
ChangeListener = Callable[["QuizSession"], None]

logger = logging.getLogger(__name__)


class QuizSession:
    """Single-player quiz session with write-once answers."""

    def __init__(
        self,
        questions: Iterable[AnsweredQuestion],
        difficulty: str,
        *,
        current_index: int = 0,
    ) -> None:
        items = list(questions)
        if not items:
            raise InvalidSessionError(
                "A quiz session needs at least one question."
            )
        if not 0 <= current_index < len(items):
            raise InvalidSessionError(
                "Current index {0} is outside 0..{1}.".format(
                    current_index, len(items) - 1
                )
            )
        for position, item in enumerate(items):
            if position < current_index and not item.is_answered:
                raise InvalidSessionError(
                    f"Question {position + 1} was skipped without an answer."
                )
            if position > current_index and item.is_answered:
                raise InvalidSessionError(
                    f"Question {position + 1} is answered ahead of the "
                    "current question."
                )
        self._questions = items
        self._difficulty = difficulty
        self._index = current_index
        self._state: SessionState = "active"
        self._score = _count_correct(items)
        self._listeners: list[ChangeListener] = []

    @classmethod
    def fresh(
        cls, questions: Sequence[Question], difficulty: str
    ) -> "QuizSession":
        """Start a new session at the first question with no answers."""

        return cls(
            (AnsweredQuestion(question) for question in questions),
            difficulty,
        )

    @classmethod
    def recover(
        cls, snapshot: Mapping[str, Any], requested_tier: str
    ) -> "QuizSession | None":
        """Rebuild a session from ``snapshot`` when it matches the tier.

        Returns ``None`` when the snapshot belongs to another tier. Raises
        :class:`InvalidRecoveryError` when the snapshot is malformed.
        """

        if not isinstance(snapshot, Mapping):
            raise InvalidRecoveryError("Snapshot must be a mapping.")
        if snapshot.get("difficulty") != requested_tier:
            return None

        raw_questions = snapshot.get("questions")
        if not isinstance(raw_questions, list):
            raise InvalidRecoveryError("Snapshot questions must be a list.")
        try:
            items = [AnsweredQuestion.from_dict(raw) for raw in raw_questions]
        except ValueError as exc:
            raise InvalidRecoveryError(str(exc)) from exc

        index = snapshot.get("current_index")
        if not isinstance(index, int) or isinstance(index, bool):
            raise InvalidRecoveryError(
                "Snapshot current_index must be an integer."
            )
        try:
            session = cls(items, requested_tier, current_index=index)
        except InvalidSessionError as exc:
            raise InvalidRecoveryError(str(exc)) from exc

        stored_score = snapshot.get("score")
        if stored_score != session.score:
            logger.debug(
                "Discarded stale snapshot score",
                extra={"stored": stored_score, "recounted": session.score},
            )
        return session

    @property
    def difficulty(self) -> str:
        return self._difficulty

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_completed(self) -> bool:
        return self._state == "completed"

    @property
    def questions(self) -> tuple[AnsweredQuestion, ...]:
        return tuple(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> AnsweredQuestion:
        return self._questions[self._index]

    @property
    def position(self) -> int:
        """1-based number of the active question."""

        return self._index + 1

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def is_last(self) -> bool:
        return self._index == len(self._questions) - 1

    @property
    def score(self) -> int:
        return self._score

    def answered_count(self) -> int:
        return sum(1 for item in self._questions if item.is_answered)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` for mutating transitions.

        Returns a callable that removes the listener again.
        """

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def answer(self, selected_index: int) -> bool | None:
        """Record ``selected_index`` for the current question.

        Returns whether the answer was correct, or ``None`` when the call was
        ignored because the question already holds an answer or the session
        has completed.
        """

        if self.is_completed:
            logger.debug("Ignored answer on completed session")
            return None
        current = self.current
        if current.is_answered:
            logger.debug(
                "Ignored answer for already answered question",
                extra={"question_id": current.question.id},
            )
            return None
        updated = current.with_answer(selected_index)
        self._questions[self._index] = updated
        if updated.is_correct:
            self._score += 1
        self._notify()
        return updated.is_correct

    def advance(self) -> AdvanceOutcome:
        """Move past the current, answered question.

        The last question transitions the session to ``completed``; that
        outcome is reported exactly once.
        """

        if self.is_completed:
            return "ignored"
        if not self.current.is_answered:
            logger.debug(
                "Ignored advance past unanswered question",
                extra={"question_id": self.current.question.id},
            )
            return "ignored"
        if self._index + 1 < len(self._questions):
            self._index += 1
            self._notify()
            return "advanced"
        self._state = "completed"
        return "completed"

    def result(self) -> QuizResult:
        return QuizResult(score=self._score, total=len(self._questions))

    def to_snapshot(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "difficulty": self._difficulty,
            "current_index": self._index,
            "score": self._score,
            "questions": [item.to_dict() for item in self._questions],
        }

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


def _count_correct(items: Iterable[AnsweredQuestion]) -> int:
    return sum(1 for item in items if item.is_answered and item.is_correct)
