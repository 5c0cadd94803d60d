from fastapi import APIRouter, BackgroundTasks, Depends, status

from feedrank.dependencies import get_accumulator, get_current_user
from feedrank.interests import controller
from feedrank.interests.schemas import (
    AcceptedResponse,
    FollowRequest,
    InteractionEventRequest,
    InterestMapResponse,
)
from feedrank.interests.service import InterestAccumulator

router = APIRouter(prefix="/interests", tags=["Interests"])


@router.post(
    "/events",
    response_model=AcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record an interaction event",
    description=(
        "Nudges the caller's affinity for every topic of the item by the weight "
        "of the interaction kind (like=+2, comment=+3, share=+4, hide=-3, ...). "
        "Validation errors return 422. The update itself runs after the response. "
        "Requires authentication."
    ),
)
async def record_event(
    body: InteractionEventRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    accumulator: InterestAccumulator = Depends(get_accumulator),
) -> AcceptedResponse:
    return await controller.record_event(user_id, body, accumulator, background_tasks)


@router.post(
    "/follows",
    response_model=AcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Credit an author follow to topic interests",
    description=(
        "Applies follow_author (+3) to the given topics, or to the topics of the "
        "author's recent posts when only `author_id` is given. "
        "Requires authentication."
    ),
)
async def record_follow(
    body: FollowRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user),
    accumulator: InterestAccumulator = Depends(get_accumulator),
) -> AcceptedResponse:
    return await controller.record_follow(user_id, body, accumulator, background_tasks)


@router.get(
    "/me",
    response_model=InterestMapResponse,
    summary="Caller's topic affinities",
    description="Returns 503 when the interest store is unavailable. Requires authentication.",
)
async def get_my_interests(
    user_id: str = Depends(get_current_user),
    accumulator: InterestAccumulator = Depends(get_accumulator),
) -> InterestMapResponse:
    return await controller.get_my_interests(user_id, accumulator)
