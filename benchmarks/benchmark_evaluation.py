"""Benchmarks for flag evaluation performance.

These benchmarks measure the core evaluation logic including:
- Boolean and percentage rollout evaluation
- Targeting rule matching
- Weighted variant selection
- Service evaluation through the cache

Performance Targets:
- Engine evaluation of a boolean flag: <50us
- Engine evaluation walking four rules: <200us
- Service evaluation on a cache hit: <200us
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from litestar_rollout.bucketing import bucket
from litestar_rollout.types import EvaluationReason

if TYPE_CHECKING:
    import asyncio

    from litestar_rollout import EvaluationContext, FeatureFlag, FeatureFlagService
    from litestar_rollout.engine import EvaluationEngine


# -----------------------------------------------------------------------------
# Bucketing
# -----------------------------------------------------------------------------


class TestBucketing:
    """Benchmarks for the subject hash."""

    @pytest.mark.benchmark(group="bucketing")
    def test_bucket(self, benchmark) -> None:
        result = benchmark(bucket, "user-000001", "new-checkout-flow")
        assert 0 <= result < 100


# -----------------------------------------------------------------------------
# Engine Evaluation
# -----------------------------------------------------------------------------


class TestEngineEvaluation:
    """Benchmarks for the pure evaluation engine."""

    @pytest.mark.benchmark(group="evaluation-engine")
    def test_simple_boolean_flag(
        self,
        benchmark,
        engine: EvaluationEngine,
        simple_boolean_flag: FeatureFlag,
        simple_context: EvaluationContext,
    ) -> None:
        """Benchmark the minimum amount of work an evaluation does."""
        result = benchmark(engine.evaluate, simple_boolean_flag.key, simple_boolean_flag, simple_context)

        assert result.enabled is True

    @pytest.mark.benchmark(group="evaluation-engine")
    def test_rules_worst_case(
        self,
        benchmark,
        engine: EvaluationEngine,
        flag_with_rules: FeatureFlag,
        non_matching_context: EvaluationContext,
    ) -> None:
        """Benchmark a context that walks every rule and falls through to the rollout."""
        result = benchmark(engine.evaluate, flag_with_rules.key, flag_with_rules, non_matching_context)

        assert result.reason == EvaluationReason.PERCENTAGE_ROLLOUT

    @pytest.mark.benchmark(group="evaluation-engine")
    def test_multi_variant_selection(
        self,
        benchmark,
        engine: EvaluationEngine,
        flag_with_variants: FeatureFlag,
        simple_context: EvaluationContext,
    ) -> None:
        result = benchmark(engine.evaluate, flag_with_variants.key, flag_with_variants, simple_context)

        assert result.variant is not None

    @pytest.mark.benchmark(group="evaluation-batch")
    def test_batch_1000_flags(
        self,
        benchmark,
        engine: EvaluationEngine,
        flags_1000: list[FeatureFlag],
        simple_context: EvaluationContext,
    ) -> None:
        """Benchmark evaluating every flag of a large set for one subject."""

        def evaluate_all():
            return [engine.evaluate(flag.key, flag, simple_context) for flag in flags_1000]

        results = benchmark(evaluate_all)

        assert len(results) == 1000


# -----------------------------------------------------------------------------
# Service Evaluation
# -----------------------------------------------------------------------------


class TestServiceEvaluation:
    """Benchmarks for evaluation through the persistence tier."""

    @pytest.mark.benchmark(group="evaluation-service")
    def test_cached_evaluation(
        self,
        benchmark,
        loop: asyncio.AbstractEventLoop,
        service: FeatureFlagService,
        simple_boolean_flag: FeatureFlag,
        simple_context: EvaluationContext,
    ) -> None:
        loop.run_until_complete(service.persistence.save_flag(simple_boolean_flag))

        result = benchmark(lambda: loop.run_until_complete(service.evaluate(simple_boolean_flag.key, simple_context)))

        assert result.enabled is True

    @pytest.mark.benchmark(group="evaluation-service")
    def test_uncached_evaluation(
        self,
        benchmark,
        loop: asyncio.AbstractEventLoop,
        service: FeatureFlagService,
        flag_with_rules: FeatureFlag,
        non_matching_context: EvaluationContext,
    ) -> None:
        """Benchmark a read-through that decodes the stored JSON every time."""
        loop.run_until_complete(service.persistence.save_flag(flag_with_rules))

        async def evaluate():
            service.clear_cache()
            return await service.evaluate(flag_with_rules.key, non_matching_context)

        result = benchmark(lambda: loop.run_until_complete(evaluate()))

        assert result.reason == EvaluationReason.PERCENTAGE_ROLLOUT

    @pytest.mark.benchmark(group="throughput")
    def test_is_enabled_throughput(
        self,
        benchmark,
        loop: asyncio.AbstractEventLoop,
        service: FeatureFlagService,
        flag_with_rules: FeatureFlag,
        contexts_1000: list[EvaluationContext],
    ) -> None:
        """Benchmark 1000 sequential evaluations of one flag for different subjects."""
        loop.run_until_complete(service.persistence.save_flag(flag_with_rules))

        async def evaluate_all():
            return [await service.is_enabled(flag_with_rules.key, ctx) for ctx in contexts_1000]

        results = benchmark(lambda: loop.run_until_complete(evaluate_all()))

        assert len(results) == 1000

    @pytest.mark.benchmark(group="throughput")
    def test_get_all_flags(
        self,
        benchmark,
        loop: asyncio.AbstractEventLoop,
        service: FeatureFlagService,
        flags_100: list[FeatureFlag],
    ) -> None:
        async def setup():
            for flag in flags_100:
                await service.persistence.save_flag(flag)

        loop.run_until_complete(setup())

        results = benchmark(lambda: loop.run_until_complete(service.get_all_flags()))

        assert len(results) == 100
