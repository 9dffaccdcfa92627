"""Test fixtures for litestar-rollout."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest

from litestar_rollout import (
    EvaluationContext,
    FeatureFlag,
    FeatureFlagService,
    FlagCache,
    MemorySharedStore,
    PercentageRollout,
    PersistenceTier,
    TargetingRule,
    Variant,
)

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# -----------------------------------------------------------------------------
# Persistence Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def clock() -> FakeClock:
    """Create a fake monotonic clock for cache TTL tests."""
    return FakeClock()


@pytest.fixture
def store() -> MemorySharedStore:
    """Create an in-memory shared store."""
    return MemorySharedStore()


@pytest.fixture
def cache(clock: FakeClock) -> FlagCache:
    """Create a 30 second TTL cache driven by the fake clock."""
    return FlagCache(ttl=30.0, clock=clock)


@pytest.fixture
def persistence(store: MemorySharedStore, cache: FlagCache) -> PersistenceTier:
    """Create a persistence tier over the in-memory store."""
    return PersistenceTier(store=store, cache=cache)


@pytest.fixture
def service(persistence: PersistenceTier) -> FeatureFlagService:
    """Create a feature flag service with a fixed wall clock."""
    return FeatureFlagService(persistence=persistence, clock=lambda: FIXED_NOW)


# -----------------------------------------------------------------------------
# Fakeredis Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def fake_redis():
    """Create a fake Redis client for testing.

    Requires fakeredis package.
    """
    try:
        import fakeredis.aioredis
    except ImportError:
        pytest.skip("fakeredis not installed")

    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
async def redis_store(fake_redis) -> AsyncGenerator:
    """Create a Redis shared store backed by fakeredis."""
    from litestar_rollout.storage.redis import RedisSharedStore

    store = RedisSharedStore(redis=fake_redis)
    yield store
    await fake_redis.flushall()


# -----------------------------------------------------------------------------
# Feature Flag Model Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def simple_flag() -> FeatureFlag:
    """Create an enabled boolean flag."""
    return FeatureFlag(
        key="test-flag",
        name="Test Flag",
        description="A test flag",
        enabled=True,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def flag_with_rules() -> FeatureFlag:
    """Create a flag whose rollout excludes everyone unless a rule matches."""
    return FeatureFlag(
        key="rules-flag",
        name="Flag with Rules",
        enabled=True,
        rollout=PercentageRollout(value=0),
        targeting=[
            TargetingRule(attribute="plan", operator="equals", value="premium"),
            TargetingRule(attribute="country", operator="in", value=["US", "CA"]),
        ],
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def flag_with_variants() -> FeatureFlag:
    """Create a flag with A/B test variants."""
    return FeatureFlag(
        key="ab-test",
        name="A/B Test",
        enabled=True,
        variants=[
            Variant(key="control", name="Control", weight=50, payload={"color": "blue"}),
            Variant(key="treatment", name="Treatment", weight=50, payload={"color": "green"}),
        ],
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


# -----------------------------------------------------------------------------
# Evaluation Context Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def context() -> EvaluationContext:
    """Create a basic evaluation context."""
    return EvaluationContext(user_id="user-123", attributes={"plan": "free", "country": "UK"})


@pytest.fixture
def premium_context() -> EvaluationContext:
    """Create a premium user context."""
    return EvaluationContext(user_id="user-456", attributes={"plan": "premium", "country": "DE"})
