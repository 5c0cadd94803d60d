"""Experiments service: deterministic, sticky variant assignment.

bucket = int(SHA-256(f"{user_id}:{experiment_key}").hexdigest(), 16) % len(variants)

The hash alone makes assignment sticky for a fixed variant list. The Redis
copy (key exp:{experiment_key}:{user_id}, TTL 24 h) keeps a user on their
variant while the variant list is edited mid-experiment.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence

from redis.asyncio import Redis

from feedrank.experiments.exceptions import VariantAssignmentError

logger = logging.getLogger(__name__)

_ASSIGNMENT_TTL_S: int = 60 * 60 * 24
_ASSIGNMENT_KEY = "exp:{experiment_key}:{user_id}"


def assign_bucket(user_id: str, experiment_key: str, variant_names: Sequence[str]) -> str:
    """Pure deterministic assignment, no storage."""
    if not variant_names:
        raise VariantAssignmentError(f"Experiment '{experiment_key}' has no variants.")
    key = f"{user_id}:{experiment_key}"
    bucket = int(hashlib.sha256(key.encode()).hexdigest(), 16) % len(variant_names)
    return variant_names[bucket]


class ExperimentAssigner:
    def __init__(self, redis: Redis | None = None, ttl_s: int = _ASSIGNMENT_TTL_S) -> None:
        self._redis = redis
        self._ttl_s = ttl_s

    async def assign_variant(
        self,
        user_id: str,
        experiment_key: str,
        variant_names: Sequence[str],
    ) -> str:
        """Return the user's variant for ``experiment_key``.

        A stored assignment is reused when it still names a live variant.
        Redis failures fall back to the deterministic bucket.
        """
        if not variant_names:
            raise VariantAssignmentError(f"Experiment '{experiment_key}' has no variants.")

        cache_key = _ASSIGNMENT_KEY.format(experiment_key=experiment_key, user_id=user_id)
        if self._redis is not None:
            try:
                cached = await self._redis.get(cache_key)
            except Exception as exc:
                logger.warning("Variant lookup failed for %s: %s", cache_key, exc)
                cached = None
            if isinstance(cached, bytes):
                cached = cached.decode()
            if cached in variant_names:
                return cached

        variant = assign_bucket(user_id, experiment_key, variant_names)

        if self._redis is not None:
            try:
                await self._redis.setex(cache_key, self._ttl_s, variant)
            except Exception as exc:
                logger.warning("Variant write failed for %s: %s", cache_key, exc)
        logger.info("Experiment %s assigned user %s -> %s", experiment_key, user_id, variant)
        return variant
