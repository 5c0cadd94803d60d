"""Interests domain Pydantic V2 schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class InteractionEventRequest(BaseModel):
    """One interaction of the caller with a content item.

    ``kind`` is validated by the service so that unknown kinds surface as the
    same 422 error whether they arrive over HTTP or from an internal caller.
    """

    topics: list[str] = Field(
        description="Topics of the item the user interacted with. At least one must be non-empty."
    )
    kind: str = Field(
        description=(
            "view, long_view, like, dislike, comment, share, hide, report or follow_author."
        )
    )
    duration_ms: int | None = Field(
        default=None,
        ge=0,
        description="Dwell time for kind=view. Views longer than 15 s count as long_view.",
    )


class FollowRequest(BaseModel):
    author_id: str | None = Field(
        default=None, description="Followed author. Used to infer topics when none are given."
    )
    author_topics: list[str] | None = Field(
        default=None, description="Explicit topics to credit. Take precedence over inference."
    )


class AcceptedResponse(BaseModel):
    accepted: bool = True


class InterestMapResponse(BaseModel):
    user_id: str
    interests: dict[str, float] = Field(
        description="Affinity per topic, each within [-10, 50]."
    )
