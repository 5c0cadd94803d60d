"""Candidate retrieval: a bounded, time-ordered window of recent posts.

The ranking path never scans the full corpus. It reads the most recent
``limit`` non-deleted posts and scores only those.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import sqlalchemy as sa

from feedrank.database import AsyncSessionFactory
from feedrank.models.follow import Follow
from feedrank.models.post import Post


@dataclass(frozen=True)
class Candidate:
    """A content item eligible for ranking.

    Counts and ``created_at`` are kept as received. Malformed values are
    tolerated here and degrade to zero inside the scorer.
    """

    id: str
    author_id: str | None
    created_at: datetime | str | None
    topics: tuple[str, ...] = ()
    enriched_topics: tuple[str, ...] = ()
    like_count: Any = 0
    comment_count: Any = 0
    view_count: Any = 0
    extra: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_post(cls, post: Post) -> Candidate:
        return cls(
            id=str(post.post_id),
            author_id=str(post.author_id) if post.author_id is not None else None,
            created_at=post.created_at,
            topics=tuple(post.topics or ()),
            enriched_topics=tuple(post.enriched_topics or ()),
            like_count=post.like_count,
            comment_count=post.comment_count,
            view_count=post.view_count,
            extra={"title": post.title},
        )

    def to_dict(self) -> dict[str, Any]:
        created = self.created_at.isoformat() if isinstance(self.created_at, datetime) else self.created_at
        return {
            "id": self.id,
            "author_id": self.author_id,
            "created_at": created,
            "topics": list(self.topics),
            "enriched_topics": list(self.enriched_topics),
            "like_count": self.like_count,
            "comment_count": self.comment_count,
            "view_count": self.view_count,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        created = data.get("created_at")
        if isinstance(created, str):
            try:
                created = datetime.fromisoformat(created)
            except ValueError:
                pass
        return cls(
            id=str(data["id"]),
            author_id=data.get("author_id"),
            created_at=created,
            topics=tuple(data.get("topics") or ()),
            enriched_topics=tuple(data.get("enriched_topics") or ()),
            like_count=data.get("like_count", 0),
            comment_count=data.get("comment_count", 0),
            view_count=data.get("view_count", 0),
            extra=dict(data.get("extra") or {}),
        )


class CandidateSource(Protocol):
    async def get_recent(self, limit: int) -> list[Candidate]: ...

    async def get_following(self, user_id: str) -> set[str]: ...

    async def get_recent_by_author(self, author_id: str, limit: int) -> list[Candidate]: ...


class SqlCandidateSource:
    """CandidateSource reading the ``posts`` and ``follows`` tables."""

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    async def get_recent(self, limit: int) -> list[Candidate]:
        """Most recent non-deleted posts, newest first."""
        q = (
            sa.select(Post)
            .where(Post.deleted_at.is_(None))
            .order_by(Post.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            posts = (await session.execute(q)).scalars().all()
        return [Candidate.from_post(p) for p in posts]

    async def get_following(self, user_id: str) -> set[str]:
        q = sa.select(Follow.following_id).where(Follow.follower_id == user_id)
        async with self._session_factory() as session:
            rows = (await session.execute(q)).scalars().all()
        return {str(r) for r in rows}

    async def get_recent_by_author(self, author_id: str, limit: int) -> list[Candidate]:
        q = (
            sa.select(Post)
            .where(Post.author_id == author_id, Post.deleted_at.is_(None))
            .order_by(Post.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            posts = (await session.execute(q)).scalars().all()
        return [Candidate.from_post(p) for p in posts]
