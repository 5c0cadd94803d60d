import pytest

from feedrank.experiments.exceptions import VariantAssignmentError
from feedrank.experiments.service import ExperimentAssigner, assign_bucket

VARIANTS = ["topics_v1", "topics_explore_v1"]


def test_assign_bucket_is_deterministic() -> None:
    first = assign_bucket("u1", "feed_algo_v1", VARIANTS)
    assert all(assign_bucket("u1", "feed_algo_v1", VARIANTS) == first for _ in range(10))
    assert first in VARIANTS


def test_assign_bucket_spreads_users() -> None:
    assigned = {assign_bucket(f"user-{i}", "feed_algo_v1", VARIANTS) for i in range(100)}
    assert assigned == set(VARIANTS)


def test_assign_bucket_rejects_empty_variants() -> None:
    with pytest.raises(VariantAssignmentError):
        assign_bucket("u1", "feed_algo_v1", [])


@pytest.mark.asyncio
async def test_assignment_is_stored_with_ttl(fake_redis) -> None:
    assigner = ExperimentAssigner(fake_redis, ttl_s=3600)
    variant = await assigner.assign_variant("u1", "feed_algo_v1", VARIANTS)
    assert fake_redis.values["exp:feed_algo_v1:u1"] == variant
    assert fake_redis.ttls["exp:feed_algo_v1:u1"] == 3600


@pytest.mark.asyncio
async def test_stored_assignment_is_sticky(fake_redis) -> None:
    bucket = assign_bucket("u1", "feed_algo_v1", VARIANTS)
    other = next(v for v in VARIANTS if v != bucket)
    fake_redis.values["exp:feed_algo_v1:u1"] = other

    assigner = ExperimentAssigner(fake_redis)
    assert await assigner.assign_variant("u1", "feed_algo_v1", VARIANTS) == other


@pytest.mark.asyncio
async def test_stale_stored_variant_is_reassigned(fake_redis) -> None:
    fake_redis.values["exp:feed_algo_v1:u1"] = "retired_v0"
    assigner = ExperimentAssigner(fake_redis)
    variant = await assigner.assign_variant("u1", "feed_algo_v1", VARIANTS)
    assert variant == assign_bucket("u1", "feed_algo_v1", VARIANTS)
    assert fake_redis.values["exp:feed_algo_v1:u1"] == variant


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_bucket(fake_redis) -> None:
    fake_redis.fail = True
    assigner = ExperimentAssigner(fake_redis)
    variant = await assigner.assign_variant("u1", "feed_algo_v1", VARIANTS)
    assert variant == assign_bucket("u1", "feed_algo_v1", VARIANTS)


@pytest.mark.asyncio
async def test_empty_variants_raise(fake_redis) -> None:
    with pytest.raises(VariantAssignmentError):
        await ExperimentAssigner(fake_redis).assign_variant("u1", "feed_algo_v1", [])
