"""Immutable question records shared by quiz sources, sessions and views."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, MutableMapping

__all__ = [
    "DEFAULT_TIERS",
    "Question",
    "AnsweredQuestion",
    "QuizResult",
]

DEFAULT_TIERS = ("easy", "medium", "hard")


@dataclass(frozen=True)
class Question:
    """A single multiple-choice quiz item."""

    id: str
    difficulty: str
    text: str
    options: tuple[str, ...]
    correct_answer: int
    explanation: str = ""

    def __post_init__(self) -> None:
        if not self.options:
            raise ValueError(f"Question '{self.id}' has no options.")
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                "Question '{0}' correct answer {1} is outside 0..{2}.".format(
                    self.id,
                    self.correct_answer,
                    len(self.options) - 1,
                )
            )

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_answer]

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "difficulty": self.difficulty,
            "text": self.text,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(
        cls, payload: Mapping[str, Any], *, fallback_id: str | None = None
    ) -> "Question":
        """Build a question from snapshot keys or question-bank wire keys.

        Both ``correct_answer`` and ``correctAnswer`` are accepted, and the
        identifier may arrive as ``id`` or ``_id``. Invalid payloads raise
        ``ValueError``.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Question payload must be a mapping.")
        identifier = payload.get("id", payload.get("_id", fallback_id))
        if identifier is None:
            raise ValueError("Question payload is missing an id.")
        options = payload.get("options")
        if not isinstance(options, (list, tuple)) or not all(
            isinstance(option, str) for option in options
        ):
            raise ValueError(
                f"Question '{identifier}' options must be a list of strings."
            )
        correct = payload.get("correct_answer", payload.get("correctAnswer"))
        if not _is_index(correct):
            raise ValueError(
                f"Question '{identifier}' correct answer must be an integer."
            )
        explanation = payload.get("explanation")
        return cls(
            id=str(identifier),
            difficulty=str(payload.get("difficulty", "")),
            text=str(payload.get("text", "")),
            options=tuple(options),
            correct_answer=correct,
            explanation=str(explanation) if explanation is not None else "",
        )


@dataclass(frozen=True)
class AnsweredQuestion:
    """A question paired with the player's selection, if any."""

    question: Question
    user_answer: int | None = None

    @property
    def is_answered(self) -> bool:
        return self.user_answer is not None

    @property
    def is_correct(self) -> bool:
        return self.user_answer == self.question.correct_answer

    def with_answer(self, index: int) -> "AnsweredQuestion":
        if self.is_answered:
            raise ValueError(
                f"Question '{self.question.id}' has already been answered."
            )
        if not 0 <= index < len(self.question.options):
            raise ValueError(
                "Option {0} is outside 0..{1} for question '{2}'.".format(
                    index,
                    len(self.question.options) - 1,
                    self.question.id,
                )
            )
        return replace(self, user_answer=index)

    def to_dict(self) -> MutableMapping[str, Any]:
        payload = self.question.to_dict()
        payload["user_answer"] = self.user_answer
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AnsweredQuestion":
        question = Question.from_dict(payload)
        raw_answer = payload.get("user_answer", payload.get("userAnswer"))
        if raw_answer is None:
            return cls(question)
        if not _is_index(raw_answer) or not (
            0 <= raw_answer < len(question.options)
        ):
            raise ValueError(
                f"Question '{question.id}' has an invalid recorded answer."
            )
        return cls(question, raw_answer)


@dataclass(frozen=True)
class QuizResult:
    """Final outcome handed to whatever renders the results screen."""

    score: int
    total: int

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.score / self.total


def _is_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
