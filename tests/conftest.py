import asyncio
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from feedrank.database import AsyncSessionFactory, create_tables, get_async_session_factory
from feedrank.dependencies import get_current_user
from feedrank.feed.candidates import Candidate
from feedrank.feed.exposure import ExposureLogger
from feedrank.feed.service import RankingService
from feedrank.interests.service import InterestAccumulator
from feedrank.interests.store import clamp_score
from feedrank.main import create_app
from feedrank.topics.classifier import TopicClassifier

NOW = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Redis double: only the commands feedrank issues
# ---------------------------------------------------------------------------


class FakePipeline:
    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._ops: list[tuple[str, str, tuple]] = []

    def lpush(self, key: str, *values: str) -> "FakePipeline":
        self._ops.append(("lpush", key, values))
        return self

    def ltrim(self, key: str, start: int, end: int) -> "FakePipeline":
        self._ops.append(("ltrim", key, (start, end)))
        return self

    async def execute(self) -> list[Any]:
        self._redis.check()
        if self._redis.hang:
            # Never answers, like a server that stopped responding.
            await asyncio.Event().wait()
        results: list[Any] = []
        for op, key, args in self._ops:
            items = self._redis.lists.setdefault(key, [])
            if op == "lpush":
                for value in args:
                    items.insert(0, value)
                results.append(len(items))
            else:
                start, end = args
                self._redis.lists[key] = items[start:None if end == -1 else end + 1]
                results.append(True)
        self._ops.clear()
        return results


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.lists: dict[str, list[str]] = {}
        self.fail = False
        self.hang = False

    def check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    async def get(self, key: str) -> str | None:
        self.check()
        return self.values.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.check()
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def aclose(self) -> None:
        return None


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class InMemoryCandidateSource:
    def __init__(self) -> None:
        self.candidates: list[Candidate] = []
        self.following: dict[str, set[str]] = {}
        self.fail_recent = False
        self.fail_following = False
        self.fail_author = False
        self.recent_calls = 0

    async def get_recent(self, limit: int) -> list[Candidate]:
        self.recent_calls += 1
        if self.fail_recent:
            raise ConnectionError("candidate store unavailable")
        return self.candidates[:limit]

    async def get_following(self, user_id: str) -> set[str]:
        if self.fail_following:
            raise ConnectionError("graph store unavailable")
        return set(self.following.get(user_id, set()))

    async def get_recent_by_author(self, author_id: str, limit: int) -> list[Candidate]:
        if self.fail_author:
            raise ConnectionError("candidate store unavailable")
        return [c for c in self.candidates if c.author_id == author_id][:limit]


class InMemoryInterestStore:
    def __init__(self) -> None:
        self.scores: dict[tuple[str, str], float] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def upsert_increment(self, user_id: str, topic: str, delta: float) -> float:
        if self.fail_writes:
            raise ConnectionError("interest store unavailable")
        key = (user_id, topic)
        score = clamp_score(self.scores.get(key, 0.0) + delta)
        self.scores[key] = score
        return score

    async def get_all(self, user_id: str) -> dict[str, float]:
        if self.fail_reads:
            raise ConnectionError("interest store unavailable")
        return {topic: score for (uid, topic), score in self.scores.items() if uid == user_id}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def candidate_source() -> InMemoryCandidateSource:
    return InMemoryCandidateSource()


@pytest.fixture
def interest_store() -> InMemoryInterestStore:
    return InMemoryInterestStore()


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    def _make(
        candidate_id: str,
        *,
        author_id: str = "author-1",
        age_hours: float = 0.0,
        topics: tuple[str, ...] = (),
        enriched_topics: tuple[str, ...] = (),
        likes: Any = 0,
        comments: Any = 0,
        views: Any = 0,
    ) -> Candidate:
        return Candidate(
            id=candidate_id,
            author_id=author_id,
            created_at=NOW - timedelta(hours=age_hours),
            topics=topics,
            enriched_topics=enriched_topics,
            like_count=likes,
            comment_count=comments,
            view_count=views,
        )

    return _make


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[AsyncSessionFactory, None]:
    factory = get_async_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'feedrank.db'}")
    await create_tables(factory)
    yield factory
    await factory.kw["bind"].dispose()


@pytest.fixture
def app(candidate_source, interest_store, fake_redis, now):
    application = create_app()
    exposure = ExposureLogger(fake_redis)
    application.state.redis = fake_redis
    application.state.exposure = exposure
    application.state.classifier = TopicClassifier()
    application.state.accumulator = InterestAccumulator(interest_store, candidate_source)
    application.state.ranking_service = RankingService(
        candidate_source, interest_store, redis=fake_redis, exposure=exposure, clock=lambda: now
    )
    application.dependency_overrides[get_current_user] = lambda: "u1"
    return application


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await app.state.exposure.drain()
