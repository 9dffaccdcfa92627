"""Feature flag service: evaluation entry points and flag CRUD.

Construct one instance per application and pass it around explicitly (the
Litestar plugin does this through dependency injection)::

    service = FeatureFlagService.from_config(FeatureFlagsConfig())
    await service.create_flag(FlagCreate(key="new-ui", name="New UI", enabled=True))
    if await service.is_enabled("new-ui", EvaluationContext(user_id="user-42")):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from litestar_rollout.cache import FlagCache
from litestar_rollout.context import EvaluationContext
from litestar_rollout.engine import EvaluationEngine
from litestar_rollout.health import HealthCheckResult
from litestar_rollout.models.flag import FeatureFlag, FlagCreate, FlagUpdate
from litestar_rollout.models.rollout import PercentageRollout, next_rollout_stage
from litestar_rollout.persistence import PersistenceTier
from litestar_rollout.storage.memory import MemorySharedStore
from litestar_rollout.storage.redis import RedisSharedStore
from litestar_rollout.types import HealthStatus

if TYPE_CHECKING:
    from litestar_rollout.config import FeatureFlagsConfig
    from litestar_rollout.results import EvaluationResult
    from litestar_rollout.storage.base import SharedStore

__all__ = ("FeatureFlagService",)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _store_from_config(config: FeatureFlagsConfig) -> SharedStore:
    if config.backend == "memory":
        return MemorySharedStore()
    if config.redis_client is not None:
        return RedisSharedStore(redis=config.redis_client, reconnect_interval=config.reconnect_interval)
    return RedisSharedStore.from_url(
        config.redis_url or "",
        reconnect_interval=config.reconnect_interval,
        socket_timeout=config.socket_timeout,
    )


class FeatureFlagService:
    """Evaluate and manage feature flags.

    Args:
        persistence: The cache / shared store / fallback tier.
        engine: Evaluation engine, defaults to one using the ``development`` environment.
        clock: Wall-clock source used for timestamps and schedule rollouts.
    """

    def __init__(
        self,
        persistence: PersistenceTier,
        engine: EvaluationEngine | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.persistence = persistence
        self.engine = engine or EvaluationEngine()
        self._clock = clock

    @classmethod
    def from_config(cls, config: FeatureFlagsConfig, store: SharedStore | None = None) -> FeatureFlagService:
        """Build a service from configuration.

        ``store`` overrides the store the configuration would create.
        """
        if store is None:
            store = _store_from_config(config)
        persistence = PersistenceTier(
            store=store,
            cache=FlagCache(ttl=config.cache_ttl, max_size=config.cache_max_size),
            prefix=config.key_prefix,
        )
        return cls(persistence=persistence, engine=EvaluationEngine(default_environment=config.default_environment))

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------
    async def evaluate(self, key: str, context: EvaluationContext | None = None) -> EvaluationResult:
        """Evaluate ``key`` for ``context``.

        Never raises for a missing or misconfigured flag; the outcome is encoded
        in the result's ``reason``.
        """
        flag = await self.persistence.get_flag(key)
        return self.engine.evaluate(key, flag, context or EvaluationContext(), now=self._clock())

    async def is_enabled(self, key: str, context: EvaluationContext | None = None) -> bool:
        result = await self.evaluate(key, context)
        return result.enabled

    async def get_variant(self, key: str, context: EvaluationContext | None = None) -> str | None:
        result = await self.evaluate(key, context)
        return result.variant

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------
    async def get_flag(self, key: str) -> FeatureFlag | None:
        return await self.persistence.get_flag(key)

    async def get_all_flags(self) -> list[FeatureFlag]:
        return await self.persistence.get_all_flags()

    async def create_flag(self, data: FlagCreate) -> FeatureFlag:
        """Create a flag.

        Key uniqueness is not checked here; callers check with :meth:`get_flag`
        first. Missing ``enabled`` defaults to ``False`` and missing ``rollout``
        to a boolean rollout.
        """
        flag = data.build(now=self._clock())
        await self.persistence.save_flag(flag)
        logger.info("Created feature flag %s", flag.key, extra={"flag_key": flag.key})
        return flag

    async def update_flag(self, key: str, updates: FlagUpdate) -> FeatureFlag | None:
        """Shallow-merge ``updates`` into the stored flag; ``None`` if it does not exist."""
        existing = await self.persistence.get_flag(key)
        if existing is None:
            return None
        updated = existing.merged(updates, updated_at=self._clock())
        await self.persistence.save_flag(updated)
        logger.info("Updated feature flag %s", key, extra={"flag_key": key, "fields": sorted(updates.changes())})
        return updated

    async def delete_flag(self, key: str) -> bool:
        """Remove the flag from every tier.

        Returns ``True`` even when only the local tiers could be cleared.
        """
        await self.persistence.delete_flag(key)
        logger.info("Deleted feature flag %s", key, extra={"flag_key": key})
        return True

    def register_default_flags(self, flags: Iterable[FlagCreate]) -> None:
        """Seed the fallback registry, e.g. for local development or as a safety net.

        Defaults are never written to the shared store.
        """
        now = self._clock()
        for data in flags:
            self.persistence.register_fallback(data.build(now=now))

    def clear_cache(self) -> None:
        self.persistence.clear_cache()

    # -------------------------------------------------------------------------
    # Rollout control
    # -------------------------------------------------------------------------
    async def set_rollout_percentage(self, key: str, percentage: float) -> FeatureFlag | None:
        """Switch ``key`` to a percentage rollout, clamping to ``[0, 100]``."""
        return await self.update_flag(key, FlagUpdate(rollout=PercentageRollout.clamped(percentage)))

    async def advance_rollout(self, key: str) -> FeatureFlag | None:
        """Move a percentage rollout to its next stage.

        Returns ``None`` when the flag does not exist or is already at 100%.
        Non-percentage rollouts start at the first stage.
        """
        flag = await self.persistence.get_flag(key)
        if flag is None:
            return None
        current = flag.rollout.value if isinstance(flag.rollout, PercentageRollout) else 0
        stage = next_rollout_stage(current)
        if stage is None:
            return None
        logger.info("Advancing rollout of %s to %d%%", key, stage, extra={"flag_key": key, "percentage": stage})
        return await self.set_rollout_percentage(key, stage)

    async def emergency_rollback(self, key: str) -> FeatureFlag | None:
        """Disable ``key`` immediately, zeroing a percentage rollout."""
        flag = await self.persistence.get_flag(key)
        if flag is None:
            return None
        updates = FlagUpdate(enabled=False)
        if isinstance(flag.rollout, PercentageRollout):
            updates.rollout = PercentageRollout(value=0)
        logger.warning("Emergency rollback of feature flag %s", key, extra={"flag_key": key})
        return await self.update_flag(key, updates)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    async def health_check(self) -> HealthCheckResult:
        """Ping the shared store and report DEGRADED when only the local tiers can serve."""
        connected = await self.persistence.store.ping()
        if not connected:
            logger.warning("Feature flag health check could not reach the shared store")
        return HealthCheckResult(
            status=HealthStatus.HEALTHY if connected else HealthStatus.DEGRADED,
            store_connected=connected,
            cache=self.persistence.cache.stats(),
            fallback_flags=len(self.persistence.fallback),
            checked_at=self._clock(),
        )

    async def close(self) -> None:
        await self.persistence.close()
