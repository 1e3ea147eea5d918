"""Question sources: fetch an ordered question list for a difficulty tier."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Protocol

import httpx

from ..core.files import read_jsonl
from .errors import FetchError
from .models import Question

__all__ = [
    "QuestionSource",
    "HttpQuestionSource",
    "FileQuestionSource",
    "parse_questions",
]

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):
    """Anything able to produce the questions for a difficulty tier."""

    async def fetch(self, tier: str) -> List[Question]:
        ...


class HttpQuestionSource:
    """Fetch questions from ``GET {base_url}/api/questions/{tier}``.

    No retries are attempted; every failure surfaces as :class:`FetchError`.
    ``transport`` lets tests plug in an :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def url_for(self, tier: str) -> str:
        return f"{self.base_url}/api/questions/{tier}"

    async def fetch(self, tier: str) -> List[Question]:
        url = self.url_for(tier)
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(
                    url, headers={"Cache-Control": "no-cache"}
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "Question fetch rejected",
                    extra={
                        "url": url,
                        "status_code": exc.response.status_code,
                    },
                )
                raise FetchError(
                    "Question source returned HTTP {0} for tier '{1}'.".format(
                        exc.response.status_code, tier
                    )
                ) from exc
            except httpx.RequestError as exc:
                logger.error(
                    "Question source unreachable",
                    extra={"url": url, "error": str(exc)},
                )
                raise FetchError(
                    f"Question source unreachable at {url}: {exc}"
                ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError(
                f"Question source returned invalid JSON for tier '{tier}'."
            ) from exc
        questions = parse_questions(payload)
        logger.info(
            "Fetched questions",
            extra={"tier": tier, "count": len(questions), "url": url},
        )
        return questions


class FileQuestionSource:
    """Serve questions from a JSONL bank, filtered by ``difficulty``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    async def fetch(self, tier: str) -> List[Question]:
        if not self.path.is_file():
            raise FetchError(f"Question bank not found: {self.path}")
        try:
            records = read_jsonl(self.path)
        except (OSError, ValueError) as exc:
            raise FetchError(
                f"Failed to read question bank {self.path}: {exc}"
            ) from exc
        questions = parse_questions(
            [record for record in records if record.get("difficulty") == tier]
        )
        logger.info(
            "Loaded questions from bank",
            extra={
                "tier": tier,
                "count": len(questions),
                "bank": str(self.path),
            },
        )
        return questions


def parse_questions(payload: Any) -> List[Question]:
    """Convert a decoded payload into questions or raise ``FetchError``."""

    if not isinstance(payload, list):
        raise FetchError("Question payload must be a JSON array.")
    questions: List[Question] = []
    for index, item in enumerate(payload):
        try:
            questions.append(Question.from_dict(item, fallback_id=str(index)))
        except ValueError as exc:
            raise FetchError(
                f"Invalid question at position {index}: {exc}"
            ) from exc
    return questions

