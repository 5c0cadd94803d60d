"""Feed domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from feedrank.feed.scoring import AlgorithmVariant


class ScoreBreakdownResponse(BaseModel):
    topic_score: float = Field(ge=0.0, le=1.0)
    recency_score: float = Field(ge=0.0, le=1.0)
    engagement_score: float = Field(ge=0.0, le=1.0)
    follow_score: float = Field(ge=0.0, le=1.0)
    final_score: float


class RankedItemResponse(BaseModel):
    """One ranked candidate with the components that produced its score."""

    id: str
    author_id: str | None
    created_at: datetime | None = Field(
        default=None, description="None when the stored timestamp is missing or malformed."
    )
    topics: list[str]
    enriched_topics: list[str]
    like_count: Any = 0
    comment_count: Any = 0
    view_count: Any = 0
    title: str | None = None
    position: int = Field(ge=0, description="Zero-based rank in this response.")
    score: ScoreBreakdownResponse


class RankedFeedResponse(BaseModel):
    """Personalised ranked feed.

    ``cached=True`` when the page was served from the short-TTL ranked cache.
    """

    items: list[RankedItemResponse]
    variant: AlgorithmVariant
    cached: bool
    limit: int
