"""Per-(user, topic) affinity persistence.

Key schema
----------
user_interests(user_id, topic)  unique   score clamped to [SCORE_MIN, SCORE_MAX]

Increments are a single ``INSERT … ON CONFLICT DO UPDATE … RETURNING`` with
the clamp computed by the database. Concurrent events for the same pair never
race in Python and readers never see an out-of-bounds score.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Protocol

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite

from feedrank.database import AsyncSessionFactory
from feedrank.interests.constants import SCORE_MAX, SCORE_MIN
from feedrank.models.user_interest import UserInterest

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class InterestStore(Protocol):
    async def upsert_increment(self, user_id: str, topic: str, delta: float) -> float: ...

    async def get_all(self, user_id: str) -> dict[str, float]: ...


def clamp_score(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def _clamped(expr: sa.ColumnElement) -> sa.ColumnElement:
    return sa.case(
        (expr > SCORE_MAX, SCORE_MAX),
        (expr < SCORE_MIN, SCORE_MIN),
        else_=expr,
    )


class SqlInterestStore:
    """InterestStore backed by the ``user_interests`` table."""

    def __init__(self, session_factory: AsyncSessionFactory) -> None:
        self._session_factory = session_factory

    async def upsert_increment(self, user_id: str, topic: str, delta: float) -> float:
        """Atomically add ``delta`` to the (user, topic) score, creating the row if absent.

        Returns the stored score after clamping.
        """
        now = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            dialect = session.bind.dialect.name
            insert = _INSERT_BY_DIALECT.get(dialect)
            if insert is None:
                raise RuntimeError(f"Atomic upsert is not supported on dialect '{dialect}'")

            stmt = insert(UserInterest).values(
                interest_id=uuid.uuid4().hex,
                user_id=user_id,
                topic=topic,
                score=clamp_score(delta),
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "topic"],
                set_={
                    "score": _clamped(UserInterest.score + delta),
                    "updated_at": now,
                },
            ).returning(UserInterest.score)

            try:
                score = (await session.execute(stmt)).scalar_one()
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return float(score)

    async def get_all(self, user_id: str) -> dict[str, float]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(
                    sa.select(UserInterest.topic, UserInterest.score).where(
                        UserInterest.user_id == user_id
                    )
                )
            ).all()
        return {row.topic: float(row.score) for row in rows}
