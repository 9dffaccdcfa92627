"""Basic Feature Flag Usage Example.

This example demonstrates the fundamental usage of litestar-rollout:
- Setting up a Litestar application with the FeatureFlagsPlugin
- Creating feature flags through the injected FeatureFlagService
- Evaluating flags in route handlers
- Using the EvaluationContext for user targeting

To run this example:
    uvicorn examples.basic_usage:app --reload

Then visit:
    - http://localhost:8000/
    - http://localhost:8000/feature?user_id=user-123
    - http://localhost:8000/all-flags
    - POST http://localhost:8000/evaluate/admin_panel with {"email": "dev@example.com"}
"""

from __future__ import annotations

import asyncio
from typing import Any

from litestar import Litestar, get, post
from litestar.exceptions import NotFoundException

from litestar_rollout import (
    EvaluationContext,
    FeatureFlagService,
    FeatureFlagsConfig,
    FeatureFlagsPlugin,
    FlagCreate,
    TargetingRule,
)

# Create the plugin configuration with memory backend (suitable for development)
config = FeatureFlagsConfig(backend="memory")


async def setup_sample_flags(app: Litestar) -> None:
    """Set up sample feature flags on application startup."""
    service: FeatureFlagService = app.state.feature_flags

    # A simple feature flag, on for everyone
    await service.create_flag(
        FlagCreate(
            key="dark_mode",
            name="Dark Mode",
            description="Enable dark mode theme for the application",
            enabled=True,
        )
    )

    # Created flags are off until someone enables them
    await service.create_flag(
        FlagCreate(
            key="beta_feature",
            name="Beta Feature",
            description="A new feature currently in beta testing",
        )
    )

    # Only staff get the admin panel
    await service.create_flag(
        FlagCreate(
            key="admin_panel",
            name="Admin Panel",
            enabled=True,
            targeting=[TargetingRule("email", "endsWith", "@example.com")],
        )
    )

    print("Sample feature flags created successfully!")


# Route Handlers


@get("/")
async def index() -> dict:
    """Root endpoint with basic information."""
    return {
        "message": "Litestar Rollout Example",
        "endpoints": {
            "/feature": "Check feature flag status",
            "/all-flags": "List all stored feature flags",
            "/flag/{flag_key}": "Evaluate a single flag with its reason",
            "/evaluate/{flag_key}": "POST a JSON evaluation context for a flag",
        },
    }


@get("/feature")
async def check_feature(
    feature_flags: FeatureFlagService,
    user_id: str | None = None,
    email: str | None = None,
) -> dict:
    """Check the status of feature flags.

    Args:
        feature_flags: Injected feature flag service
        user_id: Optional user ID for bucketing
        email: Optional email for targeting

    Returns:
        Dictionary with flag evaluation results

    """
    context = EvaluationContext(user_id=user_id, email=email)

    return {
        "user_id": user_id,
        "flags": {
            "dark_mode": await feature_flags.is_enabled("dark_mode", context),
            "beta_feature": await feature_flags.is_enabled("beta_feature", context),
            "admin_panel": await feature_flags.is_enabled("admin_panel", context),
        },
    }


@get("/all-flags")
async def get_all_flags(feature_flags: FeatureFlagService, user_id: str | None = None) -> dict:
    """Evaluate every stored flag, e.g. for client-side flag synchronization."""
    context = EvaluationContext(user_id=user_id)
    results = {}
    for flag in await feature_flags.get_all_flags():
        result = await feature_flags.evaluate(flag.key, context)
        results[flag.key] = {"enabled": result.enabled, "reason": result.reason.value}

    return {"user_id": user_id, "flags": results, "total_flags": len(results)}


@get("/flag/{flag_key:str}")
async def get_flag_details(flag_key: str, feature_flags: FeatureFlagService, user_id: str | None = None) -> dict:
    """Evaluate a single flag and return the full result."""
    if await feature_flags.get_flag(flag_key) is None:
        raise NotFoundException(f"Flag '{flag_key}' not found")
    result = await feature_flags.evaluate(flag_key, EvaluationContext(user_id=user_id))
    return result.to_dict()


@post("/evaluate/{flag_key:str}")
async def evaluate_flag(flag_key: str, data: dict[str, Any], feature_flags: FeatureFlagService) -> dict:
    """Evaluate a flag for a context posted as JSON.

    Example body::

        {"userId": "user-123", "email": "dev@example.com", "attributes": {"plan": "premium"}}
    """
    result = await feature_flags.evaluate(flag_key, EvaluationContext.from_dict(data))
    return result.to_dict()


@get("/health")
async def health_check(feature_flags: FeatureFlagService) -> dict:
    """Health check endpoint including feature flags status."""
    return (await feature_flags.health_check()).to_dict()


# Create the Litestar application with the plugin
app = Litestar(
    route_handlers=[
        index,
        check_feature,
        get_all_flags,
        get_flag_details,
        evaluate_flag,
        health_check,
    ],
    plugins=[FeatureFlagsPlugin(config=config)],
    on_startup=[setup_sample_flags],
    debug=True,
)


# Standalone demonstration (runs without Litestar server)
async def standalone_demo() -> None:
    """Use the FeatureFlagService directly, e.g. in background jobs or scripts."""
    print("\n--- Standalone Feature Flags Demo ---\n")

    service = FeatureFlagService.from_config(FeatureFlagsConfig())
    try:
        await service.create_flag(FlagCreate(key="standalone_feature", name="Standalone Feature", enabled=True))

        context = EvaluationContext(user_id="user-123")
        result = await service.evaluate("standalone_feature", context)
        print(f"Feature 'standalone_feature' is enabled: {result.enabled}")
        print(f"Evaluation reason: {result.reason.value}")

        missing = await service.evaluate("non_existent_flag", context)
        print(f"Non-existent flag: enabled={missing.enabled}, reason={missing.reason.value}")
    finally:
        await service.close()


if __name__ == "__main__":
    asyncio.run(standalone_demo())
