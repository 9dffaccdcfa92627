"""Flag models."""

from __future__ import annotations

from litestar_rollout.models.flag import FeatureFlag, FlagCreate, FlagUpdate
from litestar_rollout.models.rollout import (
    ROLLOUT_STAGES,
    BooleanRollout,
    CohortsRollout,
    PercentageRollout,
    RolloutStrategy,
    ScheduleRollout,
    UserIdsRollout,
    next_rollout_stage,
)
from litestar_rollout.models.rule import TargetingRule
from litestar_rollout.models.variant import Variant

__all__ = (
    "ROLLOUT_STAGES",
    "BooleanRollout",
    "CohortsRollout",
    "FeatureFlag",
    "FlagCreate",
    "FlagUpdate",
    "PercentageRollout",
    "RolloutStrategy",
    "ScheduleRollout",
    "TargetingRule",
    "UserIdsRollout",
    "Variant",
    "next_rollout_stage",
)
