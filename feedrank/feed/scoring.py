"""Pure feed scoring functions. No I/O, no framework imports.

Composite = topic·α + recency·β + engagement·γ + follow·δ

  topic       weighted mean of the user's affinity for the post's topics / 50
              (topics from the enrichment signal weigh 1.5×)
  recency     linear decay from 1.0 (now) to 0.0 at 7 days
  engagement  likes + 2·comments + min(views, 1000)/25, saturating at 100 pts
  follow      1.0 when the viewer follows the author

Every component is in [0.0, 1.0]. The weight tuple comes from the algorithm
variant and always sums to 1.0. For fixed inputs (including ``now``) every
function here is deterministic.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Collection, Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from feedrank.feed.candidates import Candidate


class AlgorithmVariant(str, enum.Enum):
    TOPICS_V1 = "topics_v1"
    TOPICS_EXPLORE_V1 = "topics_explore_v1"


DEFAULT_VARIANT = AlgorithmVariant.TOPICS_V1

# Affinity normalisation ceiling: an average affinity of this many points = 1.0.
AFFINITY_CEILING: float = 50.0
# Extra weight for a topic that comes from the enrichment signal.
ENRICHED_TOPIC_BONUS: float = 0.5
RECENCY_HORIZON_DAYS: float = 7.0
VIEW_CAP: int = 1000
VIEWS_PER_POINT: float = 25.0
ENGAGEMENT_SATURATION: float = 100.0

_WEIGHT_SUM_TOLERANCE: float = 1e-9
_SECONDS_PER_DAY: float = 24 * 60 * 60


@dataclass(frozen=True)
class WeightConfig:
    """Composite weights for one algorithm variant. Must sum to 1.0."""

    topic: float
    recency: float
    engagement: float
    follow: float

    def __post_init__(self) -> None:
        total = self.topic + self.recency + self.engagement + self.follow
        if abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"WeightConfig weights must sum to 1.0, got {total}.")


VARIANT_WEIGHTS: dict[AlgorithmVariant, WeightConfig] = {
    # Balanced: centred on topics and followed authors.
    AlgorithmVariant.TOPICS_V1: WeightConfig(
        topic=0.45, recency=0.25, engagement=0.15, follow=0.15
    ),
    # Explore: less topic affinity, more fresh / popular content.
    AlgorithmVariant.TOPICS_EXPLORE_V1: WeightConfig(
        topic=0.35, recency=0.35, engagement=0.20, follow=0.10
    ),
}


@dataclass(frozen=True)
class ScoreBreakdown:
    topic_score: float
    recency_score: float
    engagement_score: float
    follow_score: float
    final_score: float
    variant: AlgorithmVariant

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["variant"] = self.variant.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ScoreBreakdown:
        return cls(
            topic_score=float(data["topic_score"]),
            recency_score=float(data["recency_score"]),
            engagement_score=float(data["engagement_score"]),
            follow_score=float(data["follow_score"]),
            final_score=float(data["final_score"]),
            variant=AlgorithmVariant(data["variant"]),
        )


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _normalized_topics(topics: Iterable[Any] | None) -> list[str]:
    if not topics or isinstance(topics, str):
        return []
    return [t.strip().lower() for t in topics if isinstance(t, str) and t.strip()]


def score_topic_affinity(
    interest_map: Mapping[str, float],
    topics: Iterable[str] | None,
    enriched_topics: Iterable[str] | None = None,
) -> float:
    """Weighted mean affinity over the union of primary and enriched topics."""
    enriched = set(_normalized_topics(enriched_topics))
    union = dict.fromkeys(_normalized_topics(topics))
    union.update(dict.fromkeys(enriched))
    if not union:
        return 0.0

    weighted_sum = 0.0
    weight_total = 0.0
    for topic in union:
        weight = 1.0 + (ENRICHED_TOPIC_BONUS if topic in enriched else 0.0)
        try:
            affinity = float(interest_map.get(topic, 0.0))
        except (TypeError, ValueError):
            affinity = 0.0
        if not math.isfinite(affinity):
            affinity = 0.0
        weighted_sum += affinity * weight
        weight_total += weight

    return _clamp01((weighted_sum / weight_total) / AFFINITY_CEILING)


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def score_recency(created_at: datetime | str | None, now: datetime) -> float:
    """Linear decay: 1.0 at ``now``, 0.0 at the 7-day horizon and beyond.

    Missing or unparseable timestamps score 0. Future timestamps clamp to 1.0.
    """
    created = parse_timestamp(created_at)
    if created is None:
        return 0.0
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    age_days = (now - created).total_seconds() / _SECONDS_PER_DAY
    return _clamp01(1.0 - age_days / RECENCY_HORIZON_DAYS)


def _count(value: Any) -> float:
    """Non-numeric, non-finite and negative counts degrade to 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def score_engagement(likes: Any, comments: Any, views: Any) -> float:
    raw = _count(likes) + 2 * _count(comments) + min(_count(views), VIEW_CAP) / VIEWS_PER_POINT
    return _clamp01(raw / ENGAGEMENT_SATURATION)


def score_follow(author_id: str | None, following: Collection[str]) -> float:
    if not following or author_id is None:
        return 0.0
    return 1.0 if str(author_id) in following else 0.0


def score_composite(
    topic: float,
    recency: float,
    engagement: float,
    follow: float,
    weights: WeightConfig,
) -> float:
    return (
        weights.topic * topic
        + weights.recency * recency
        + weights.engagement * engagement
        + weights.follow * follow
    )


def score_candidate(
    interest_map: Mapping[str, float],
    candidate: Candidate,
    following: Collection[str],
    variant: AlgorithmVariant,
    now: datetime,
) -> ScoreBreakdown:
    topic = score_topic_affinity(interest_map, candidate.topics, candidate.enriched_topics)
    recency = score_recency(candidate.created_at, now)
    engagement = score_engagement(
        candidate.like_count, candidate.comment_count, candidate.view_count
    )
    follow = score_follow(candidate.author_id, following)
    final = score_composite(topic, recency, engagement, follow, VARIANT_WEIGHTS[variant])
    return ScoreBreakdown(
        topic_score=topic,
        recency_score=recency,
        engagement_score=engagement,
        follow_score=follow,
        final_score=final,
        variant=variant,
    )
