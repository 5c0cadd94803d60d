"""Candidate content rows read by the ranking pipeline.

The content service owns writes to this table; feedrank only reads it.
Ids are opaque strings so the table can mirror any upstream id scheme.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from feedrank.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    __tablename__ = "posts"

    post_id: Mapped[str] = mapped_column(
        sa.String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    author_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    title: Mapped[str | None] = mapped_column(sa.String(300), nullable=True)
    body: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    # Topics inferred from the post text
    topics: Mapped[list[str] | None] = mapped_column(sa.JSON, nullable=True)
    # Topics inferred from a secondary signal (e.g. video tagging)
    enriched_topics: Mapped[list[str] | None] = mapped_column(sa.JSON, nullable=True)
    like_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    view_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    deleted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_now
    )

    __table_args__ = (
        sa.Index("ix_posts_created_at", "created_at"),
        sa.Index("ix_posts_author_created", "author_id", "created_at"),
    )
