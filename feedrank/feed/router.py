from fastapi import APIRouter, Depends, Query

from feedrank.dependencies import get_current_user, get_ranking_service
from feedrank.feed import controller
from feedrank.feed.schemas import RankedFeedResponse
from feedrank.feed.service import RankingService

router = APIRouter(prefix="/feed", tags=["Feed"])


@router.get(
    "/ranked",
    response_model=RankedFeedResponse,
    summary="Personalised ranked feed",
    description=(
        "Ranks the most recent candidate window for the caller. "
        "Score = topic affinity + recency (linear, 7-day horizon) + engagement "
        "+ followed author, weighted per algorithm variant. "
        "The variant comes from `variant` when valid, otherwise from the "
        "caller's sticky experiment assignment. "
        "Pages are Redis-cached for a short TTL. "
        "Returns 503 when the candidate store is unavailable. "
        "Requires authentication."
    ),
)
async def get_ranked_feed(
    limit: int = Query(20, ge=1, le=100, description="Page size."),
    variant: str | None = Query(
        default=None,
        description="Optional algorithm variant override (topics_v1, topics_explore_v1).",
    ),
    user_id: str = Depends(get_current_user),
    service: RankingService = Depends(get_ranking_service),
) -> RankedFeedResponse:
    return await controller.get_ranked_feed(user_id, service, limit=limit, variant=variant)
