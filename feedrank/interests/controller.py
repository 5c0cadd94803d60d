"""Interests controller. Orchestration layer between router and service."""

from fastapi import BackgroundTasks

from feedrank.exceptions import ServiceUnavailableError, UnprocessableError
from feedrank.interests.constants import InteractionKind
from feedrank.interests.exceptions import InterestStoreError, InvalidInteractionError
from feedrank.interests.schemas import (
    AcceptedResponse,
    FollowRequest,
    InteractionEventRequest,
    InterestMapResponse,
)
from feedrank.interests.service import InterestAccumulator, kind_for_view, validate_event


async def record_event(
    user_id: str,
    body: InteractionEventRequest,
    accumulator: InterestAccumulator,
    background_tasks: BackgroundTasks,
) -> AcceptedResponse:
    try:
        kind, topics = validate_event(user_id, body.topics, body.kind)
    except InvalidInteractionError as exc:
        raise UnprocessableError(str(exc))

    if kind is InteractionKind.VIEW and body.duration_ms is not None:
        kind = kind_for_view(body.duration_ms)

    # Interest bookkeeping never delays the response.
    background_tasks.add_task(accumulator.apply_event, user_id, topics, kind)
    return AcceptedResponse()


async def record_follow(
    user_id: str,
    body: FollowRequest,
    accumulator: InterestAccumulator,
    background_tasks: BackgroundTasks,
) -> AcceptedResponse:
    if not body.author_id and not body.author_topics:
        raise UnprocessableError("author_id or author_topics is required.")

    background_tasks.add_task(
        accumulator.register_author_follow,
        user_id,
        author_topics=body.author_topics,
        author_id=body.author_id,
    )
    return AcceptedResponse()


async def get_my_interests(user_id: str, accumulator: InterestAccumulator) -> InterestMapResponse:
    try:
        interests = await accumulator.get_interest_map(user_id)
    except InterestStoreError:
        raise ServiceUnavailableError("Interest store is temporarily unavailable.")
    return InterestMapResponse(user_id=user_id, interests=interests)
