import jwt
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from feedrank.config import Settings
from feedrank.feed.service import RankingService
from feedrank.interests.service import InterestAccumulator
from feedrank.topics.classifier import TopicClassifier

_bearer = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return Settings()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    settings: Settings = Depends(get_settings),
) -> str:
    """User id from the bearer token's ``sub`` claim."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
        user_id = str(payload["sub"]).strip()
    except (jwt.PyJWTError, KeyError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return user_id


# Long-lived objects are built once in the lifespan and kept on app.state.


def get_classifier(request: Request) -> TopicClassifier:
    return request.app.state.classifier


def get_accumulator(request: Request) -> InterestAccumulator:
    return request.app.state.accumulator


def get_ranking_service(request: Request) -> RankingService:
    return request.app.state.ranking_service
