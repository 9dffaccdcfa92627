"""Feature flag evaluation and gradual rollout for Litestar applications."""

from __future__ import annotations

from litestar_rollout.bucketing import bucket
from litestar_rollout.cache import CacheStats, FlagCache
from litestar_rollout.config import FeatureFlagsConfig
from litestar_rollout.context import EvaluationContext
from litestar_rollout.engine import EvaluationEngine
from litestar_rollout.exceptions import (
    ConfigurationError,
    FeatureFlagError,
    FlagDeserializationError,
    FlagValidationError,
    StoredValueError,
    StoreUnavailableError,
)
from litestar_rollout.health import HealthCheckResult
from litestar_rollout.models import (
    ROLLOUT_STAGES,
    BooleanRollout,
    CohortsRollout,
    FeatureFlag,
    FlagCreate,
    FlagUpdate,
    PercentageRollout,
    RolloutStrategy,
    ScheduleRollout,
    TargetingRule,
    UserIdsRollout,
    Variant,
)
from litestar_rollout.persistence import PersistenceTier
from litestar_rollout.plugin import FeatureFlagsPlugin
from litestar_rollout.results import EvaluationResult
from litestar_rollout.service import FeatureFlagService
from litestar_rollout.storage import FallbackRegistry, MemorySharedStore, SharedStore
from litestar_rollout.storage.redis import RedisSharedStore
from litestar_rollout.types import CacheState, EvaluationReason, HealthStatus, RolloutType, RuleOperator

__all__ = (
    "ROLLOUT_STAGES",
    "BooleanRollout",
    "CacheState",
    "CacheStats",
    "CohortsRollout",
    "ConfigurationError",
    "EvaluationContext",
    "EvaluationEngine",
    "EvaluationReason",
    "EvaluationResult",
    "FallbackRegistry",
    "FeatureFlag",
    "FeatureFlagError",
    "FeatureFlagService",
    "FeatureFlagsConfig",
    "FeatureFlagsPlugin",
    "FlagCache",
    "FlagCreate",
    "FlagDeserializationError",
    "FlagUpdate",
    "FlagValidationError",
    "HealthCheckResult",
    "HealthStatus",
    "MemorySharedStore",
    "PercentageRollout",
    "PersistenceTier",
    "RedisSharedStore",
    "RolloutStrategy",
    "RolloutType",
    "RuleOperator",
    "ScheduleRollout",
    "SharedStore",
    "StoreUnavailableError",
    "StoredValueError",
    "TargetingRule",
    "UserIdsRollout",
    "Variant",
    "bucket",
)

__version__ = "0.1.0"
