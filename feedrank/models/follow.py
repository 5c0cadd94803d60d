from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from feedrank.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Follow(Base):
    """Unidirectional follow edge (follower → following)."""

    __tablename__ = "follows"

    follow_id: Mapped[str] = mapped_column(
        sa.String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    follower_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    following_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id != following_id", name="ck_follows_no_self"),
        sa.Index("idx_follows_follower_id", "follower_id"),
    )
