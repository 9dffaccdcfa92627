"""Benchmark fixtures for litestar-rollout performance testing.

This module provides fixtures for benchmarking flag evaluation and
persistence operations at various scales.
"""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from datetime import UTC, datetime

import pytest

from litestar_rollout import (
    EvaluationContext,
    FeatureFlag,
    FeatureFlagService,
    MemorySharedStore,
    PercentageRollout,
    PersistenceTier,
    TargetingRule,
    Variant,
)
from litestar_rollout.engine import EvaluationEngine

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


# -----------------------------------------------------------------------------
# Runtime Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def loop() -> Generator[asyncio.AbstractEventLoop, None, None]:
    """Create a dedicated event loop for driving async code inside benchmarks."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def engine() -> EvaluationEngine:
    """Create an evaluation engine for benchmarking."""
    return EvaluationEngine()


@pytest.fixture
def store() -> MemorySharedStore:
    """Create an in-memory shared store for benchmarking."""
    return MemorySharedStore()


@pytest.fixture
def persistence(store: MemorySharedStore) -> PersistenceTier:
    """Create a persistence tier with the default 30 second cache."""
    return PersistenceTier(store=store)


@pytest.fixture
def service(persistence: PersistenceTier) -> FeatureFlagService:
    """Create a feature flag service for benchmarking."""
    return FeatureFlagService(persistence=persistence)


# -----------------------------------------------------------------------------
# Flag Complexity Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def simple_boolean_flag() -> FeatureFlag:
    """Create a simple boolean flag with no rules.

    This represents the minimum complexity flag for baseline benchmarks.
    """
    return FeatureFlag(key="simple-flag", name="Simple Boolean Flag", enabled=True, created_at=NOW, updated_at=NOW)


@pytest.fixture
def flag_with_rules() -> FeatureFlag:
    """Create a flag with several targeting rules ahead of a percentage rollout.

    The last rule is a regex so a non-matching context walks every operator.
    """
    return FeatureFlag(
        key="rules-flag",
        name="Flag with Rules",
        enabled=True,
        rollout=PercentageRollout(value=10),
        targeting=[
            TargetingRule("plan", "equals", "enterprise"),
            TargetingRule("country", "in", ["US", "CA"]),
            TargetingRule("email", "endsWith", "@example.com"),
            TargetingRule("userId", "regex", r"^internal-\d+$"),
        ],
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def flag_with_variants() -> FeatureFlag:
    """Create a flag with four weighted variants."""
    return FeatureFlag(
        key="multi-variant",
        name="Multi Variant",
        enabled=True,
        variants=[
            Variant("control", "Control", 25, {"theme": "default"}),
            Variant("variant-a", "Variant A", 25, {"theme": "dark"}),
            Variant("variant-b", "Variant B", 25, {"theme": "light"}),
            Variant("variant-c", "Variant C", 25, {"theme": "compact"}),
        ],
        created_at=NOW,
        updated_at=NOW,
    )


# -----------------------------------------------------------------------------
# Scale Fixtures
# -----------------------------------------------------------------------------


def create_flag(index: int) -> FeatureFlag:
    """Create a unique percentage rollout flag for the given index."""
    return FeatureFlag(
        key=f"flag-{index:05d}",
        name=f"Flag {index}",
        enabled=index % 10 != 0,
        rollout=PercentageRollout(value=index % 101),
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def flags_100() -> list[FeatureFlag]:
    """Create 100 flags for batch benchmarks."""
    return [create_flag(i) for i in range(100)]


@pytest.fixture
def flags_1000() -> list[FeatureFlag]:
    """Create 1000 flags for batch benchmarks."""
    return [create_flag(i) for i in range(1000)]


# -----------------------------------------------------------------------------
# Context Fixtures
# -----------------------------------------------------------------------------


def create_context(index: int) -> EvaluationContext:
    """Create a unique evaluation context for the given index."""
    return EvaluationContext(
        user_id=f"user-{index:06d}",
        email=f"user-{index}@corp.io",
        attributes={
            "plan": ["free", "basic", "premium", "enterprise"][index % 4],
            "country": ["US", "CA", "UK", "DE", "FR"][index % 5],
        },
    )


@pytest.fixture
def simple_context() -> EvaluationContext:
    """Create a context with only a user id."""
    return EvaluationContext(user_id="user-000001")


@pytest.fixture
def non_matching_context() -> EvaluationContext:
    """Create a context that fails every rule of ``flag_with_rules``."""
    return EvaluationContext(
        user_id="user-000001",
        email="someone@corp.io",
        attributes={"plan": "free", "country": "DE"},
    )


@pytest.fixture
def contexts_1000() -> list[EvaluationContext]:
    """Create 1000 unique contexts for throughput benchmarks."""
    return [create_context(i) for i in range(1000)]
