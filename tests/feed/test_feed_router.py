import jwt
import pytest
from httpx import AsyncClient

from feedrank.config import Settings
from feedrank.dependencies import get_current_user, get_settings


@pytest.fixture
def seeded_feed(candidate_source, interest_store, make_candidate):
    candidate_source.candidates = [
        make_candidate("p-music", age_hours=3, topics=("music",), likes=10),
        make_candidate("p-sports", age_hours=1, topics=("sports",)),
    ]
    interest_store.scores = {("u1", "sports"): 50.0}


@pytest.mark.asyncio
async def test_ranked_feed(async_client: AsyncClient, seeded_feed) -> None:
    response = await async_client.get("/api/v1/feed/ranked", params={"limit": 5, "variant": "topics_v1"})
    assert response.status_code == 200
    data = response.json()
    assert data["variant"] == "topics_v1"
    assert data["cached"] is False
    assert [item["id"] for item in data["items"]] == ["p-sports", "p-music"]
    assert data["items"][0]["position"] == 0
    assert set(data["items"][0]["score"]) == {
        "topic_score",
        "recency_score",
        "engagement_score",
        "follow_score",
        "final_score",
    }


@pytest.mark.asyncio
async def test_second_request_is_cached(async_client: AsyncClient, seeded_feed) -> None:
    params = {"limit": 5, "variant": "topics_v1"}
    first = await async_client.get("/api/v1/feed/ranked", params=params)
    second = await async_client.get("/api/v1/feed/ranked", params=params)
    assert second.json()["cached"] is True
    assert second.json()["items"] == first.json()["items"]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 101])
async def test_limit_out_of_range(async_client: AsyncClient, limit: int) -> None:
    response = await async_client.get("/api/v1/feed/ranked", params={"limit": limit})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_candidate_outage_returns_503(async_client: AsyncClient, candidate_source) -> None:
    candidate_source.fail_recent = True
    response = await async_client.get("/api/v1/feed/ranked")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_requires_authentication(app, async_client: AsyncClient) -> None:
    app.dependency_overrides.pop(get_current_user)
    response = await async_client.get("/api/v1/feed/ranked")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "feedrank"}
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_incoming_request_id_is_echoed(async_client: AsyncClient) -> None:
    response = await async_client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_bearer_token_subject_is_user(
    app, async_client: AsyncClient, interest_store
) -> None:
    settings = Settings(jwt_secret="test-secret-with-at-least-32-bytes!!")
    app.dependency_overrides.pop(get_current_user)
    app.dependency_overrides[get_settings] = lambda: settings
    interest_store.scores = {("jwt-user", "music"): 7.0}
    token = jwt.encode({"sub": "jwt-user"}, settings.jwt_secret, algorithm="HS256")

    response = await async_client.get(
        "/api/v1/interests/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200
    assert response.json()["user_id"] == "jwt-user"

    bad = await async_client.get(
        "/api/v1/interests/me", headers={"Authorization": "Bearer not-a-token"}
    )
    assert bad.status_code == 401
