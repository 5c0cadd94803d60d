"""Fire-and-forget exposure logging for served feeds.

Key schema
----------
feed:exposures   list of JSON entries (LPUSH, capped with LTRIM)

Entry: {user_id, experiment_key, variant, items: [{id, position, score}], logged_at}
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine, Sequence
from datetime import datetime, timezone
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

EXPOSURE_LIST_KEY = "feed:exposures"
# Items recorded per exposure entry.
MAX_ITEMS_PER_EXPOSURE: int = 200


def build_exposure_entry(
    user_id: str,
    variant: str,
    experiment_key: str | None,
    items: Sequence[tuple[str, float]],
    now: datetime | None = None,
) -> dict[str, Any]:
    logged_at = now or datetime.now(timezone.utc)
    return {
        "user_id": user_id,
        "experiment_key": experiment_key,
        "variant": variant,
        "items": [
            {"id": item_id, "position": position, "score": score}
            for position, (item_id, score) in enumerate(items[:MAX_ITEMS_PER_EXPOSURE])
        ],
        "logged_at": logged_at.isoformat(),
    }


class ExposureLogger:
    def __init__(self, redis: Redis, max_len: int = 10_000, timeout_s: float = 2.0) -> None:
        self._redis = redis
        self._max_len = max_len
        self._timeout_s = timeout_s
        self._pending: set[asyncio.Task[Any]] = set()

    async def log(
        self,
        user_id: str,
        variant: str,
        experiment_key: str | None,
        items: Sequence[tuple[str, float]],
    ) -> None:
        entry = build_exposure_entry(user_id, variant, experiment_key, items)
        pipeline = self._redis.pipeline()
        pipeline.lpush(EXPOSURE_LIST_KEY, json.dumps(entry))
        pipeline.ltrim(EXPOSURE_LIST_KEY, 0, self._max_len - 1)
        await asyncio.wait_for(pipeline.execute(), self._timeout_s)

    def log_in_background(
        self,
        user_id: str,
        variant: str,
        experiment_key: str | None,
        items: Sequence[tuple[str, float]],
    ) -> asyncio.Task[Any]:
        """Schedule log() without awaiting it. Failures are logged, never raised."""
        return self._spawn(self.log(user_id, variant, experiment_key, list(items)))

    async def drain(self, timeout_s: float | None = None) -> None:
        """Wait for in-flight exposure writes (shutdown and tests).

        Writes still running after ``timeout_s`` (default: the write timeout)
        are cancelled.
        """
        if not self._pending:
            return
        limit = self._timeout_s if timeout_s is None else timeout_s
        _, still_running = await asyncio.wait(set(self._pending), timeout=limit)
        if still_running:
            logger.warning("Cancelled %d exposure writes still in flight", len(still_running))
            for task in still_running:
                task.cancel()
            await asyncio.gather(*still_running, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        # Strong reference until done; the loop only keeps weak ones.
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Exposure log write failed: %s", exc)
