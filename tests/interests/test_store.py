import asyncio

import pytest

from feedrank.interests.constants import SCORE_MAX, SCORE_MIN
from feedrank.interests.store import SqlInterestStore, clamp_score


def test_clamp_score_bounds() -> None:
    assert clamp_score(1000) == SCORE_MAX
    assert clamp_score(-1000) == SCORE_MIN
    assert clamp_score(3.5) == 3.5


@pytest.mark.asyncio
async def test_upsert_creates_row(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    score = await store.upsert_increment("u1", "sports", 2.0)
    assert score == 2.0
    assert await store.get_all("u1") == {"sports": 2.0}


@pytest.mark.asyncio
async def test_two_likes_accumulate(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    await store.upsert_increment("u1", "sports", 2.0)
    score = await store.upsert_increment("u1", "sports", 2.0)
    assert score == 4.0
    assert await store.get_all("u1") == {"sports": 4.0}


@pytest.mark.asyncio
async def test_concurrent_increments_are_not_lost(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    await store.upsert_increment("u1", "music", 2.0)
    await asyncio.gather(*(store.upsert_increment("u1", "music", 2.0) for _ in range(5)))
    assert await store.get_all("u1") == {"music": 12.0}


@pytest.mark.asyncio
async def test_score_clamped_at_upper_bound(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    for _ in range(30):
        score = await store.upsert_increment("u1", "sports", 4.0)
        assert SCORE_MIN <= score <= SCORE_MAX
    assert (await store.get_all("u1"))["sports"] == SCORE_MAX


@pytest.mark.asyncio
async def test_score_clamped_at_lower_bound(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    await store.upsert_increment("u1", "war", -5.0)
    await store.upsert_increment("u1", "war", -5.0)
    score = await store.upsert_increment("u1", "war", -5.0)
    assert score == SCORE_MIN


@pytest.mark.asyncio
async def test_first_insert_is_clamped(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    assert await store.upsert_increment("u1", "memes", 500.0) == SCORE_MAX


@pytest.mark.asyncio
async def test_get_all_is_scoped_to_user(session_factory) -> None:
    store = SqlInterestStore(session_factory)
    await store.upsert_increment("u1", "sports", 2.0)
    await store.upsert_increment("u2", "music", 3.0)
    assert await store.get_all("u1") == {"sports": 2.0}
    assert await store.get_all("nobody") == {}
