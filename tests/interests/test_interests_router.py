import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_event_is_applied_after_response(async_client: AsyncClient, interest_store) -> None:
    response = await async_client.post(
        "/api/v1/interests/events", json={"topics": ["Sports", "music"], "kind": "like"}
    )
    assert response.status_code == 202
    assert response.json() == {"accepted": True}
    assert await interest_store.get_all("u1") == {"sports": 2.0, "music": 2.0}


@pytest.mark.asyncio
async def test_long_view_from_duration(async_client: AsyncClient, interest_store) -> None:
    response = await async_client.post(
        "/api/v1/interests/events",
        json={"topics": ["movies"], "kind": "view", "duration_ms": 20_000},
    )
    assert response.status_code == 202
    assert await interest_store.get_all("u1") == {"movies": 1.0}


@pytest.mark.asyncio
async def test_unknown_kind_is_422(async_client: AsyncClient, interest_store) -> None:
    response = await async_client.post(
        "/api/v1/interests/events", json={"topics": ["sports"], "kind": "superlike"}
    )
    assert response.status_code == 422
    assert interest_store.scores == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"kind": "like"},
        {"topics": [], "kind": "like"},
        {"topics": ["  ", ""], "kind": "like"},
    ],
)
async def test_event_without_topics_is_422(
    async_client: AsyncClient, interest_store, body: dict
) -> None:
    response = await async_client.post("/api/v1/interests/events", json=body)
    assert response.status_code == 422
    assert interest_store.scores == {}


@pytest.mark.asyncio
async def test_storage_outage_still_accepts(async_client: AsyncClient, interest_store) -> None:
    interest_store.fail_writes = True
    response = await async_client.post(
        "/api/v1/interests/events", json={"topics": ["sports"], "kind": "like"}
    )
    assert response.status_code == 202


@pytest.mark.asyncio
async def test_follow_infers_topics(
    async_client: AsyncClient, candidate_source, interest_store, make_candidate
) -> None:
    candidate_source.candidates = [make_candidate("p1", author_id="a9", topics=("comedy",))]
    response = await async_client.post("/api/v1/interests/follows", json={"author_id": "a9"})
    assert response.status_code == 202
    assert await interest_store.get_all("u1") == {"comedy": 3.0}


@pytest.mark.asyncio
async def test_follow_without_target_is_422(async_client: AsyncClient) -> None:
    response = await async_client.post("/api/v1/interests/follows", json={})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_my_interests(async_client: AsyncClient, interest_store) -> None:
    interest_store.scores = {("u1", "war"): -4.0, ("u2", "music"): 9.0}
    response = await async_client.get("/api/v1/interests/me")
    assert response.status_code == 200
    assert response.json() == {"user_id": "u1", "interests": {"war": -4.0}}


@pytest.mark.asyncio
async def test_my_interests_store_outage_is_503(async_client: AsyncClient, interest_store) -> None:
    interest_store.fail_reads = True
    response = await async_client.get("/api/v1/interests/me")
    assert response.status_code == 503
