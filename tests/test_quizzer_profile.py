from __future__ import annotations

import asyncio
import json

import pytest

from quiz_utils.quizzer.errors import AggregationError
from quiz_utils.quizzer.profile import (
    JsonProfileStore,
    MemoryProfileStore,
    ProfileIncrement,
    ProfileStats,
    next_increment,
)


def test_next_increment_computes_running_average() -> None:
    first = next_increment(ProfileStats(), 3)
    assert first == ProfileIncrement(1, 3, 3.0)

    later = next_increment(ProfileStats(2, 5, 2.5), 4)
    assert later.games_delta == 1
    assert later.score_delta == 4
    assert later.new_average == pytest.approx(3.0)


def test_json_profile_store_accumulates(tmp_path) -> None:
    store = JsonProfileStore(tmp_path / "profiles")

    async def play(scores):
        for score in scores:
            stats = await store.read_stats("ana")
            await store.apply_increment("ana", next_increment(stats, score))
        return await store.read_stats("ana")

    stats = asyncio.run(play([2, 1, 3]))

    assert stats == ProfileStats(
        total_games=3, total_score=6, average_score=2.0
    )
    payload = json.loads(store.path_for("ana").read_text(encoding="utf-8"))
    assert payload["total_games"] == 3


def test_json_profile_store_defaults_for_new_user(tmp_path) -> None:
    store = JsonProfileStore(tmp_path)
    assert asyncio.run(store.read_stats("new-user")) == ProfileStats()


@pytest.mark.parametrize("user_id", ["", "..", "a/b", "../etc", "x y"])
def test_json_profile_store_rejects_unsafe_ids(tmp_path, user_id) -> None:
    store = JsonProfileStore(tmp_path)
    with pytest.raises(AggregationError):
        store.path_for(user_id)


def test_json_profile_store_wraps_corrupt_file(tmp_path) -> None:
    store = JsonProfileStore(tmp_path)
    store.path_for("bob").write_text("[]", encoding="utf-8")
    with pytest.raises(AggregationError, match="object"):
        asyncio.run(store.read_stats("bob"))

    store.path_for("bob").write_text('{"total_games": "many"}', "utf-8")
    with pytest.raises(AggregationError, match="Malformed"):
        asyncio.run(store.read_stats("bob"))


@pytest.mark.parametrize(
    "content",
    [
        b"\xff\xfe garbage",
        b'{"total_games": Infinity}',
        b'{"total_score": -Infinity}',
        b'{"total_games": NaN}',
        b'{"average_score": Infinity}',
        b'{"average_score": NaN}',
    ],
)
def test_json_profile_store_rejects_undecodable_stats(tmp_path, content):
    store = JsonProfileStore(tmp_path)
    store.path_for("bob").write_bytes(content)

    with pytest.raises(AggregationError):
        asyncio.run(store.read_stats("bob"))


def test_memory_profile_store_records_increments() -> None:
    store = MemoryProfileStore({"u": ProfileStats(1, 2, 2.0)})
    increment = ProfileIncrement(1, 4, 3.0)

    asyncio.run(store.apply_increment("u", increment))

    assert store.increments == [("u", increment)]
    assert asyncio.run(store.read_stats("u")) == ProfileStats(2, 6, 3.0)
