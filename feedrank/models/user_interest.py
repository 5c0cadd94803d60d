from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from feedrank.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserInterest(Base):
    """Accumulated affinity of one user for one topic.

    Rows are created lazily on the first interaction with a topic and never
    hard-deleted. ``score`` stays within [SCORE_MIN, SCORE_MAX] after every write.
    """

    __tablename__ = "user_interests"

    interest_id: Mapped[str] = mapped_column(
        sa.String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    user_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    topic: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    score: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now, onupdate=_now
    )

    __table_args__ = (
        sa.UniqueConstraint("user_id", "topic", name="uq_user_interests_user_topic"),
        sa.Index("ix_user_interests_user_id", "user_id"),
    )
