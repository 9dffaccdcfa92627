"""A/B Testing Example.

This example demonstrates using litestar-rollout for A/B testing:
- Creating flags with weighted variants
- Configuring variant weights for traffic distribution
- Sticky variant assignment per user
- Reading the variant payload in a route handler

To run this example:
    uvicorn examples.ab_testing:app --reload

Then visit:
    - http://localhost:8000/experiment?user_id=user-123
    - http://localhost:8000/experiment?user_id=user-456
    - http://localhost:8000/button-color?user_id=user-789
"""

from __future__ import annotations

import asyncio
from collections import Counter

from litestar import Litestar, get

from litestar_rollout import (
    EvaluationContext,
    FeatureFlagService,
    FeatureFlagsConfig,
    FeatureFlagsPlugin,
    FlagCreate,
    Variant,
)

config = FeatureFlagsConfig(backend="memory")

CHECKOUT_EXPERIMENT = FlagCreate(
    key="checkout_flow_experiment",
    name="Checkout Flow Experiment",
    description="Test new streamlined checkout flow vs. existing flow",
    enabled=True,
    variants=[
        Variant("control", "Control (Original)", 50, {"checkout_version": "v1", "show_progress_bar": False}),
        Variant("treatment", "Treatment (New)", 50, {"checkout_version": "v2", "show_progress_bar": True}),
    ],
)

# Weights are relative, these three add up to 4
BUTTON_COLOR_EXPERIMENT = FlagCreate(
    key="button_color",
    name="Call to Action Button Color",
    enabled=True,
    variants=[
        Variant("blue", "Blue", 2, {"color": "#1d4ed8"}),
        Variant("green", "Green", 1, {"color": "#15803d"}),
        Variant("orange", "Orange", 1, {"color": "#c2410c"}),
    ],
)


async def setup_ab_test_flags(app: Litestar) -> None:
    """Set up A/B testing feature flags."""
    service: FeatureFlagService = app.state.feature_flags
    await service.create_flag(CHECKOUT_EXPERIMENT)
    await service.create_flag(BUTTON_COLOR_EXPERIMENT)


@get("/experiment")
async def checkout_experiment(feature_flags: FeatureFlagService, user_id: str | None = None) -> dict:
    """Return the checkout variant assigned to a user.

    The assignment is derived from the user id, so repeated requests for the
    same user always get the same variant.
    """
    result = await feature_flags.evaluate("checkout_flow_experiment", EvaluationContext(user_id=user_id))
    return {
        "user_id": user_id,
        "variant": result.variant,
        "config": dict(result.payload or {}),
    }


@get("/button-color")
async def button_color(feature_flags: FeatureFlagService, user_id: str | None = None) -> dict:
    """Return only the variant key for the button color test."""
    variant = await feature_flags.get_variant("button_color", EvaluationContext(user_id=user_id))
    return {"user_id": user_id, "variant": variant or "blue"}


app = Litestar(
    route_handlers=[checkout_experiment, button_color],
    plugins=[FeatureFlagsPlugin(config=config)],
    on_startup=[setup_ab_test_flags],
    debug=True,
)


async def show_distribution() -> None:
    """Print how 10,000 users are split across the button color variants."""
    service = FeatureFlagService.from_config(FeatureFlagsConfig())
    try:
        await service.create_flag(BUTTON_COLOR_EXPERIMENT)
        counts = Counter(
            [await service.get_variant("button_color", EvaluationContext(user_id=f"user-{i}")) for i in range(10_000)]
        )
        for variant, count in counts.most_common():
            print(f"{variant:>8}: {count / 100:.1f}%")
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(show_distribution())
