"""Shared builders for quiz_utils tests."""

from .questions import make_question, make_questions, snapshot_for

__all__ = ["make_question", "make_questions", "snapshot_for"]
