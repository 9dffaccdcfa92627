"""Percentage Rollout Example.

This example demonstrates gradual feature rollouts using litestar-rollout:
- Creating flags with percentage rollouts
- Advancing a rollout through the standard stages (1, 5, 10, 25, 50, 75, 100)
- Combining targeting rules with a percentage rollout
- Rolling back instantly when something goes wrong

Percentage rollouts are useful for:
- Reducing risk when launching new features
- Gradual migration from old to new systems
- Canary deployments and monitoring

To run this example:
    uvicorn examples.percentage_rollout:app --reload

Then visit:
    - http://localhost:8000/feature?user_id=user-123
    - http://localhost:8000/rollout-status
    - POST http://localhost:8000/rollout/new_search_algorithm/advance
    - POST http://localhost:8000/rollout/new_search_algorithm/rollback
"""

from __future__ import annotations

import asyncio

from litestar import Litestar, get, post
from litestar.exceptions import NotFoundException

from litestar_rollout import (
    EvaluationContext,
    FeatureFlag,
    FeatureFlagService,
    FeatureFlagsConfig,
    FeatureFlagsPlugin,
    FlagCreate,
    PercentageRollout,
    TargetingRule,
)

config = FeatureFlagsConfig(backend="memory")


async def setup_rollout_flags(app: Litestar) -> None:
    """Set up percentage rollout feature flags."""
    service: FeatureFlagService = app.state.feature_flags

    # Example 1: Simple percentage rollout, 25% of users get the new feature
    await service.create_flag(
        FlagCreate(
            key="new_search_algorithm",
            name="New Search Algorithm",
            description="Improved search with ML-based ranking",
            enabled=True,
            rollout=PercentageRollout(value=25),
        )
    )

    # Example 2: All premium users, plus 10% of everyone else
    await service.create_flag(
        FlagCreate(
            key="advanced_analytics",
            name="Advanced Analytics Dashboard",
            description="New analytics features with predictive insights",
            enabled=True,
            rollout=PercentageRollout(value=10),
            targeting=[TargetingRule("plan", "equals", "premium")],
        )
    )

    # Example 3: Fully rolled out in Canada, 5% canary elsewhere
    await service.create_flag(
        FlagCreate(
            key="new_payment_processor",
            name="New Payment Processor",
            description="Migration to new payment infrastructure",
            enabled=True,
            rollout=PercentageRollout(value=5),
            targeting=[TargetingRule("country", "equals", "CA")],
        )
    )


def _rollout_percentage(flag: FeatureFlag) -> float | None:
    return flag.rollout.value if isinstance(flag.rollout, PercentageRollout) else None


@get("/feature")
async def check_feature(
    feature_flags: FeatureFlagService,
    user_id: str | None = None,
    plan: str | None = None,
    country: str | None = None,
) -> dict:
    """Evaluate the rollout flags for a user.

    The same ``user_id`` always lands in the same bucket, so the answer for a
    given user only changes when the rollout percentage changes.
    """
    attributes = {name: value for name, value in (("plan", plan), ("country", country)) if value}
    context = EvaluationContext(user_id=user_id).with_attributes(**attributes)

    flags = {}
    for key in ("new_search_algorithm", "advanced_analytics", "new_payment_processor"):
        result = await feature_flags.evaluate(key, context)
        flags[key] = {"enabled": result.enabled, "reason": result.reason.value}
    return {"user_id": user_id, "flags": flags}


@get("/rollout-status")
async def rollout_status(feature_flags: FeatureFlagService) -> dict:
    """Show the current rollout percentage of every flag."""
    return {
        flag.key: {"enabled": flag.enabled, "percentage": _rollout_percentage(flag)}
        for flag in await feature_flags.get_all_flags()
    }


@post("/rollout/{flag_key:str}/advance")
async def advance(flag_key: str, feature_flags: FeatureFlagService) -> dict:
    """Move a flag to the next rollout stage."""
    flag = await feature_flags.advance_rollout(flag_key)
    if flag is None:
        raise NotFoundException(f"Flag '{flag_key}' not found or already fully rolled out")
    return {"key": flag.key, "percentage": _rollout_percentage(flag)}


@post("/rollout/{flag_key:str}/rollback")
async def rollback(flag_key: str, feature_flags: FeatureFlagService) -> dict:
    """Disable a flag immediately."""
    flag = await feature_flags.emergency_rollback(flag_key)
    if flag is None:
        raise NotFoundException(f"Flag '{flag_key}' not found")
    return {"key": flag.key, "enabled": flag.enabled, "percentage": _rollout_percentage(flag)}


app = Litestar(
    route_handlers=[check_feature, rollout_status, advance, rollback],
    plugins=[FeatureFlagsPlugin(config=config)],
    on_startup=[setup_rollout_flags],
    debug=True,
)


async def simulate_rollout() -> None:
    """Show how many of 1000 users are included as a rollout advances."""
    service = FeatureFlagService.from_config(FeatureFlagsConfig())
    try:
        await service.create_flag(
            FlagCreate(key="gradual", name="Gradual", enabled=True, rollout=PercentageRollout(value=0))
        )
        contexts = [EvaluationContext(user_id=f"user-{i}") for i in range(1000)]

        while (flag := await service.advance_rollout("gradual")) is not None:
            included = sum([await service.is_enabled("gradual", ctx) for ctx in contexts])
            print(f"{_rollout_percentage(flag):>5}% rollout -> {included / 10:.1f}% of users included")

        await service.emergency_rollback("gradual")
        print(f"After rollback: {await service.is_enabled('gradual', contexts[0])}")
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(simulate_rollout())
