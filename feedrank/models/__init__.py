from feedrank.models.follow import Follow
from feedrank.models.post import Post
from feedrank.models.user_interest import UserInterest

__all__ = [
    "Follow",
    "Post",
    "UserInterest",
]
