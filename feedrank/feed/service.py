"""Ranking service. Pure business logic, no FastAPI imports.

Algorithm (one request):
1. Resolve the algorithm variant (explicit hint → experiment assignment → default).
2. Read-through cache on (user, limit, variant), short TTL.
3. Load following set, interest map and the recent candidate window concurrently.
   Following / interests degrade to empty on failure. Candidates are required.
4. Score every candidate, stable-sort by final score (ties: newer first), truncate.
5. Schedule an exposure log entry without awaiting it.

Every external call is bounded by ``timeout_s``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from redis.asyncio import Redis

from feedrank.experiments.service import ExperimentAssigner
from feedrank.feed import cache as feed_cache
from feedrank.feed.candidates import Candidate, CandidateSource
from feedrank.feed.exceptions import InvalidRankingRequestError, RankingUnavailableError
from feedrank.feed.exposure import ExposureLogger
from feedrank.feed.scoring import (
    DEFAULT_VARIANT,
    AlgorithmVariant,
    ScoreBreakdown,
    parse_timestamp,
    score_candidate,
)
from feedrank.interests.store import InterestStore

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_WINDOW: int = 300
DEFAULT_CACHE_TTL_S: int = 45
DEFAULT_EXPERIMENT_KEY: str = "feed_algo_v1"
# Candidates scored between cooperative yields to the event loop.
_SCORE_CHUNK_SIZE: int = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RankedItem:
    candidate: Candidate
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class RankedFeed:
    items: list[RankedItem]
    variant: AlgorithmVariant
    cached: bool


def _sort_key(entry: tuple[Candidate, ScoreBreakdown]) -> tuple[float, float]:
    candidate, breakdown = entry
    created = parse_timestamp(candidate.created_at)
    created_ts = created.timestamp() if created is not None else float("-inf")
    return (-breakdown.final_score, -created_ts)


class RankingService:
    def __init__(
        self,
        candidates: CandidateSource,
        interests: InterestStore,
        assigner: ExperimentAssigner | None = None,
        redis: Redis | None = None,
        exposure: ExposureLogger | None = None,
        *,
        candidate_window: int = DEFAULT_CANDIDATE_WINDOW,
        cache_ttl_s: int = DEFAULT_CACHE_TTL_S,
        timeout_s: float = 2.0,
        experiment_key: str = DEFAULT_EXPERIMENT_KEY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._candidates = candidates
        self._interests = interests
        self._assigner = assigner
        self._redis = redis
        self._exposure = exposure
        self._candidate_window = candidate_window
        self._cache_ttl_s = cache_ttl_s
        self._timeout_s = timeout_s
        self._experiment_key = experiment_key
        self._clock = clock

    async def rank(
        self,
        user_id: str,
        limit: int = 20,
        variant_hint: AlgorithmVariant | str | None = None,
    ) -> RankedFeed:
        """Return the top ``limit`` candidates for ``user_id`` with their breakdowns.

        Raises RankingUnavailableError when the candidate source is down.
        """
        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidRankingRequestError("user_id is required.")
        if limit < 1:
            raise InvalidRankingRequestError("limit must be a positive integer.")

        variant = await self.resolve_variant(user_id, variant_hint)

        page = await self._read_cache(user_id, limit, variant)
        cached = page is not None
        candidate_count: int | None = None
        if page is None:
            page, candidate_count = await self._compute(user_id, limit, variant)
            await self._write_cache(user_id, limit, variant, page)

        feed = RankedFeed(
            items=[RankedItem(candidate=c, breakdown=b) for c, b in page],
            variant=variant,
            cached=cached,
        )
        self._log_exposure(user_id, feed)
        logger.info(
            "Ranked feed user=%s variant=%s candidates=%s returned=%d cached=%s",
            user_id, variant.value, candidate_count, len(feed.items), cached,
        )
        return feed

    async def resolve_variant(
        self, user_id: str, variant_hint: AlgorithmVariant | str | None = None
    ) -> AlgorithmVariant:
        if variant_hint is not None:
            try:
                return AlgorithmVariant(variant_hint)
            except ValueError:
                logger.warning("Ignoring unknown variant hint %r", variant_hint)

        if self._assigner is None:
            return DEFAULT_VARIANT
        try:
            name = await asyncio.wait_for(
                self._assigner.assign_variant(
                    user_id, self._experiment_key, [v.value for v in AlgorithmVariant]
                ),
                self._timeout_s,
            )
            return AlgorithmVariant(name)
        except Exception as exc:
            logger.warning(
                "Variant assignment failed for user %s, using %s: %s",
                user_id, DEFAULT_VARIANT.value, exc,
            )
            return DEFAULT_VARIANT

    # -----------------------------------------------------------------------
    # Scoring
    # -----------------------------------------------------------------------

    async def _compute(
        self, user_id: str, limit: int, variant: AlgorithmVariant
    ) -> tuple[feed_cache.RankedPage, int]:
        following, interest_map, candidates = await asyncio.gather(
            self._load_following(user_id),
            self._load_interests(user_id),
            self._load_candidates(),
        )

        now = self._clock()
        scored: feed_cache.RankedPage = []
        for start in range(0, len(candidates), _SCORE_CHUNK_SIZE):
            scored.extend(
                (c, score_candidate(interest_map, c, following, variant, now))
                for c in candidates[start:start + _SCORE_CHUNK_SIZE]
            )
            # Cancellation point between chunks
            await asyncio.sleep(0)

        scored.sort(key=_sort_key)
        return scored[:limit], len(candidates)

    async def _load_candidates(self) -> list[Candidate]:
        try:
            return await asyncio.wait_for(
                self._candidates.get_recent(self._candidate_window), self._timeout_s
            )
        except Exception as exc:
            logger.warning("Candidate source unavailable: %s", exc)
            raise RankingUnavailableError("Candidate source unavailable.") from exc

    async def _load_following(self, user_id: str) -> set[str]:
        try:
            return set(
                await asyncio.wait_for(self._candidates.get_following(user_id), self._timeout_s)
            )
        except Exception as exc:
            logger.warning("Following set unavailable for user %s: %s", user_id, exc)
            return set()

    async def _load_interests(self, user_id: str) -> dict[str, float]:
        try:
            return dict(
                await asyncio.wait_for(self._interests.get_all(user_id), self._timeout_s)
            )
        except Exception as exc:
            logger.warning("Interest map unavailable for user %s: %s", user_id, exc)
            return {}

    # -----------------------------------------------------------------------
    # Cache / exposure (best effort)
    # -----------------------------------------------------------------------

    async def _read_cache(
        self, user_id: str, limit: int, variant: AlgorithmVariant
    ) -> feed_cache.RankedPage | None:
        if self._redis is None or self._cache_ttl_s <= 0:
            return None
        try:
            return await asyncio.wait_for(
                feed_cache.get_ranked_feed(user_id, limit, variant, self._redis),
                self._timeout_s,
            )
        except Exception as exc:
            logger.warning("Ranked feed cache read failed for user %s: %s", user_id, exc)
            return None

    async def _write_cache(
        self,
        user_id: str,
        limit: int,
        variant: AlgorithmVariant,
        page: feed_cache.RankedPage,
    ) -> None:
        if self._redis is None or self._cache_ttl_s <= 0:
            return
        try:
            await asyncio.wait_for(
                feed_cache.set_ranked_feed(
                    user_id, limit, variant, page, self._cache_ttl_s, self._redis
                ),
                self._timeout_s,
            )
        except Exception as exc:
            logger.warning("Ranked feed cache write failed for user %s: %s", user_id, exc)

    def _log_exposure(self, user_id: str, feed: RankedFeed) -> None:
        if self._exposure is None:
            return
        self._exposure.log_in_background(
            user_id,
            feed.variant.value,
            self._experiment_key,
            [(item.candidate.id, item.breakdown.final_score) for item in feed.items],
        )
