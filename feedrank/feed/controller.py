"""Feed controller. Orchestration layer between router and service."""

from feedrank.exceptions import ServiceUnavailableError, UnprocessableError
from feedrank.feed.exceptions import InvalidRankingRequestError, RankingUnavailableError
from feedrank.feed.schemas import RankedFeedResponse, RankedItemResponse, ScoreBreakdownResponse
from feedrank.feed.scoring import parse_timestamp
from feedrank.feed.service import RankedItem, RankingService


def _to_item(position: int, item: RankedItem) -> RankedItemResponse:
    candidate, breakdown = item.candidate, item.breakdown
    return RankedItemResponse(
        id=candidate.id,
        author_id=candidate.author_id,
        created_at=parse_timestamp(candidate.created_at),
        topics=list(candidate.topics),
        enriched_topics=list(candidate.enriched_topics),
        like_count=candidate.like_count,
        comment_count=candidate.comment_count,
        view_count=candidate.view_count,
        title=candidate.extra.get("title"),
        position=position,
        score=ScoreBreakdownResponse(
            topic_score=breakdown.topic_score,
            recency_score=breakdown.recency_score,
            engagement_score=breakdown.engagement_score,
            follow_score=breakdown.follow_score,
            final_score=breakdown.final_score,
        ),
    )


async def get_ranked_feed(
    user_id: str,
    service: RankingService,
    limit: int = 20,
    variant: str | None = None,
) -> RankedFeedResponse:
    try:
        feed = await service.rank(user_id, limit=limit, variant_hint=variant)
    except InvalidRankingRequestError as exc:
        raise UnprocessableError(str(exc))
    except RankingUnavailableError:
        raise ServiceUnavailableError("Feed ranking is temporarily unavailable.")

    return RankedFeedResponse(
        items=[_to_item(position, item) for position, item in enumerate(feed.items)],
        variant=feed.variant,
        cached=feed.cached,
        limit=limit,
    )
