"""Redis cache helpers for the ranked feed.

Key schema
----------
feed:ranked:{user_id}:limit:{limit}:variant:{variant}   JSON list   TTL 45 s (configurable)

Each cached entry is the full ranked page: candidate fields plus the score
breakdown, in rank order.
"""

from __future__ import annotations

import json

from redis.asyncio import Redis

from feedrank.feed.candidates import Candidate
from feedrank.feed.scoring import AlgorithmVariant, ScoreBreakdown

RankedPage = list[tuple[Candidate, ScoreBreakdown]]


def ranked_feed_key(user_id: str, limit: int, variant: AlgorithmVariant) -> str:
    return f"feed:ranked:{user_id}:limit:{limit}:variant:{variant.value}"


def encode_page(page: RankedPage) -> str:
    return json.dumps(
        [
            {"candidate": candidate.to_dict(), "breakdown": breakdown.to_dict()}
            for candidate, breakdown in page
        ]
    )


def decode_page(raw: str | bytes) -> RankedPage:
    return [
        (Candidate.from_dict(entry["candidate"]), ScoreBreakdown.from_dict(entry["breakdown"]))
        for entry in json.loads(raw)
    ]


async def get_ranked_feed(
    user_id: str, limit: int, variant: AlgorithmVariant, redis: Redis
) -> RankedPage | None:
    """Return the cached page or None on a cache miss."""
    val = await redis.get(ranked_feed_key(user_id, limit, variant))
    return decode_page(val) if val is not None else None


async def set_ranked_feed(
    user_id: str,
    limit: int,
    variant: AlgorithmVariant,
    page: RankedPage,
    ttl_s: int,
    redis: Redis,
) -> None:
    if ttl_s <= 0:
        return
    await redis.setex(ranked_feed_key(user_id, limit, variant), ttl_s, encode_page(page))
