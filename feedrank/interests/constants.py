import enum


class InteractionKind(str, enum.Enum):
    VIEW = "view"
    LONG_VIEW = "long_view"
    LIKE = "like"
    DISLIKE = "dislike"
    COMMENT = "comment"
    SHARE = "share"
    HIDE = "hide"
    REPORT = "report"
    FOLLOW_AUTHOR = "follow_author"


# Affinity delta applied to every topic of the item the user interacted with.
INTEREST_WEIGHTS: dict[InteractionKind, float] = {
    InteractionKind.VIEW: 0.5,
    InteractionKind.LONG_VIEW: 1.0,
    InteractionKind.LIKE: 2.0,
    InteractionKind.DISLIKE: -2.0,
    InteractionKind.COMMENT: 3.0,
    InteractionKind.SHARE: 4.0,
    InteractionKind.HIDE: -3.0,
    InteractionKind.REPORT: -5.0,
    InteractionKind.FOLLOW_AUTHOR: 3.0,
}

# Every stored affinity score stays within these bounds.
SCORE_MIN: float = -10.0
SCORE_MAX: float = 50.0

# Views longer than this count as long_view.
LONG_VIEW_THRESHOLD_MS: int = 15_000

# How many recent items of an author are sampled to infer follow topics.
FOLLOW_INFERENCE_MAX_POSTS: int = 50
