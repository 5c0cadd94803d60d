"""Interests service. Pure business logic, no FastAPI imports.

Interaction events nudge the user's per-topic affinity by a fixed weight
(see INTEREST_WEIGHTS). Input errors are raised synchronously before any write.
Storage failures are logged and swallowed per topic so that the caller's
primary operation (the like, the comment, the follow) never fails because of
interest bookkeeping.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from feedrank.feed.candidates import Candidate, CandidateSource
from feedrank.interests.constants import (
    FOLLOW_INFERENCE_MAX_POSTS,
    INTEREST_WEIGHTS,
    LONG_VIEW_THRESHOLD_MS,
    InteractionKind,
)
from feedrank.interests.exceptions import InterestStoreError, InvalidInteractionError
from feedrank.interests.store import InterestStore

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S: float = 2.0


def normalize_topics(topics: Iterable[object]) -> list[str]:
    """Trim + lowercase, drop empties and non-strings, dedupe keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in topics:
        if not isinstance(raw, str):
            continue
        topic = raw.strip().lower()
        if topic:
            seen.setdefault(topic, None)
    return list(seen)


def kind_for_view(duration_ms: int | float) -> InteractionKind:
    """Views longer than 15 s count as a long view."""
    return InteractionKind.LONG_VIEW if duration_ms > LONG_VIEW_THRESHOLD_MS else InteractionKind.VIEW


def validate_event(
    user_id: str | None,
    topics: object,
    kind: InteractionKind | str | None,
) -> tuple[InteractionKind, list[str]]:
    """Raise InvalidInteractionError for malformed input.

    ``topics`` may be any non-string iterable; it is consumed once. Returns the
    parsed kind and the normalized topics, of which there is at least one.
    """
    if not isinstance(user_id, str) or not user_id.strip():
        raise InvalidInteractionError("user_id is required.")
    if kind is None:
        raise InvalidInteractionError("kind is required.")
    try:
        parsed = InteractionKind(kind)
    except ValueError:
        raise InvalidInteractionError(f"Unknown interaction kind '{kind}'.")
    if isinstance(topics, (str, bytes)) or not isinstance(topics, Iterable):
        raise InvalidInteractionError("topics must be a list of strings.")
    normalized = normalize_topics(topics)
    if not normalized:
        raise InvalidInteractionError("topics must contain at least one non-empty topic.")
    return parsed, normalized


class InterestAccumulator:
    def __init__(
        self,
        store: InterestStore,
        candidates: CandidateSource | None = None,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
    ) -> None:
        self._store = store
        self._candidates = candidates
        self._timeout_s = timeout_s

    async def apply_event(
        self,
        user_id: str,
        topics: Iterable[str],
        kind: InteractionKind | str,
    ) -> int:
        """Apply one interaction to every topic; returns how many topics were updated."""
        parsed, normalized = validate_event(user_id, topics, kind)
        weight = INTEREST_WEIGHTS.get(parsed, 0.0)
        if not weight:
            return 0

        results = await asyncio.gather(
            *(self._increment(user_id, topic, weight) for topic in normalized)
        )
        return sum(results)

    async def register_post_interaction(
        self,
        user_id: str,
        candidate: Candidate,
        kind: InteractionKind | str,
    ) -> int:
        if not normalize_topics(candidate.topics):
            return 0
        return await self.apply_event(user_id, candidate.topics, kind)

    async def register_author_follow(
        self,
        user_id: str,
        author_topics: Iterable[str] | None = None,
        author_id: str | None = None,
        max_posts: int = FOLLOW_INFERENCE_MAX_POSTS,
    ) -> int:
        """Credit follow_author to the author's topics.

        Explicit ``author_topics`` win. Otherwise the topics are inferred from the
        author's most recent ``max_posts`` items. Nothing to credit is a no-op.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidInteractionError("user_id is required.")

        topics = normalize_topics(author_topics or [])
        if not topics and author_id:
            topics = await self._infer_author_topics(author_id, max_posts)
        if not topics:
            return 0
        return await self.apply_event(user_id, topics, InteractionKind.FOLLOW_AUTHOR)

    async def get_interest_map(self, user_id: str) -> dict[str, float]:
        try:
            return await asyncio.wait_for(self._store.get_all(user_id), self._timeout_s)
        except Exception as exc:
            raise InterestStoreError(f"Could not load interests for user {user_id}: {exc}") from exc

    async def _infer_author_topics(self, author_id: str, max_posts: int) -> list[str]:
        if self._candidates is None:
            logger.warning("No candidate source configured; skipping follow topic inference")
            return []
        try:
            posts = await asyncio.wait_for(
                self._candidates.get_recent_by_author(author_id, max_posts),
                self._timeout_s,
            )
        except Exception as exc:
            logger.warning("Follow topic inference failed for author %s: %s", author_id, exc)
            return []
        return normalize_topics(topic for post in posts for topic in post.topics)

    async def _increment(self, user_id: str, topic: str, delta: float) -> bool:
        try:
            await asyncio.wait_for(
                self._store.upsert_increment(user_id, topic, delta), self._timeout_s
            )
        except Exception as exc:
            logger.warning(
                "Interest update failed (user=%s topic=%s delta=%s): %s",
                user_id, topic, delta, exc,
            )
            return False
        return True
