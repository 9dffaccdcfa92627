"""Flag evaluation engine.

The engine is pure: it receives an already-loaded flag and the current time,
and never touches storage. :class:`~litestar_rollout.service.FeatureFlagService`
does the loading.

Evaluation order, first decisive step wins:

1. missing flag          -> disabled, ``FLAG_NOT_FOUND``
2. kill switch off       -> disabled, ``FLAG_DISABLED``
3. environment excluded  -> disabled, ``ENVIRONMENT_MATCH``
4. targeting rule match  -> enabled, ``TARGETING_MATCH``
5. rollout strategy dispatch
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from litestar_rollout.bucketing import bucket, subject_for, variant_salt
from litestar_rollout.models.rollout import (
    BooleanRollout,
    CohortsRollout,
    PercentageRollout,
    ScheduleRollout,
    UserIdsRollout,
)
from litestar_rollout.results import EvaluationResult
from litestar_rollout.targeting import TargetingMatcher
from litestar_rollout.types import EvaluationReason

if TYPE_CHECKING:
    from litestar_rollout.context import EvaluationContext
    from litestar_rollout.models.flag import FeatureFlag
    from litestar_rollout.models.variant import Variant

__all__ = ("DEFAULT_ENVIRONMENT", "EvaluationEngine")

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "development"

COHORT_ATTRIBUTE = "cohort"


class EvaluationEngine:
    """Apply environment, targeting, rollout and variant logic to a flag.

    Args:
        default_environment: Environment assumed when the context carries none.
        matcher: Targeting rule matcher, replaceable for custom attribute resolution.
    """

    def __init__(
        self,
        default_environment: str = DEFAULT_ENVIRONMENT,
        matcher: TargetingMatcher | None = None,
    ) -> None:
        self.default_environment = default_environment
        self.matcher = matcher or TargetingMatcher()

    def evaluate(
        self,
        key: str,
        flag: FeatureFlag | None,
        context: EvaluationContext,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """Evaluate ``flag`` for ``context``. Never raises for missing or disabled flags."""
        now = now or datetime.now(UTC)

        if flag is None:
            return self._result(key, False, EvaluationReason.FLAG_NOT_FOUND, now)

        if not flag.enabled:
            return self._result(key, False, EvaluationReason.FLAG_DISABLED, now)

        if flag.environments:
            environment = context.environment or self.default_environment
            if environment not in flag.environments:
                return self._result(key, False, EvaluationReason.ENVIRONMENT_MATCH, now)

        if flag.targeting:
            rule = self.matcher.first_match(flag.targeting, context)
            if rule is not None:
                logger.debug("Flag %s matched targeting rule on '%s'", key, rule.attribute)
                return self._result(
                    key, True, EvaluationReason.TARGETING_MATCH, now, self._select_variant(flag, context)
                )

        return self._evaluate_rollout(flag, context, now)

    def _evaluate_rollout(self, flag: FeatureFlag, context: EvaluationContext, now: datetime) -> EvaluationResult:
        rollout = flag.rollout
        match rollout:
            case PercentageRollout(value=value):
                enabled = self._in_rollout(flag.key, subject_for(context), value)
                reason = EvaluationReason.PERCENTAGE_ROLLOUT
            case UserIdsRollout(ids=ids):
                enabled = context.user_id is not None and context.user_id in ids
                reason = EvaluationReason.USER_ID_MATCH
            case CohortsRollout(names=names):
                cohort = context.get(COHORT_ATTRIBUTE)
                enabled = isinstance(cohort, str) and cohort in names
                reason = EvaluationReason.COHORT_MATCH
            case ScheduleRollout():
                enabled = rollout.is_active(now)
                reason = EvaluationReason.SCHEDULE_ACTIVE
            case BooleanRollout():
                enabled = True
                reason = EvaluationReason.DEFAULT
            case _:
                logger.warning("Flag %s has an unknown rollout %r, serving default", flag.key, rollout)
                enabled = True
                reason = EvaluationReason.DEFAULT

        variant = self._select_variant(flag, context)
        return self._result(flag.key, enabled, reason, now, variant)

    @staticmethod
    def _in_rollout(flag_key: str, subject: str, percentage: float) -> bool:
        return bucket(subject, flag_key) < percentage

    @staticmethod
    def _select_variant(flag: FeatureFlag, context: EvaluationContext) -> Variant | None:
        """Pick a sticky variant by cumulative normalised weight.

        Falls back to the first variant when no boundary exceeds the bucket,
        which covers rounding at the top end and an all-zero weight list.
        """
        if not flag.variants:
            return None

        total = sum(variant.weight for variant in flag.variants)
        if total <= 0:
            return flag.variants[0]

        position = bucket(subject_for(context), variant_salt(flag.key))
        cumulative = 0.0
        for variant in flag.variants:
            cumulative += variant.weight / total * 100
            if position < cumulative:
                return variant
        return flag.variants[0]

    @staticmethod
    def _result(
        key: str,
        enabled: bool,
        reason: EvaluationReason,
        now: datetime,
        variant: Variant | None = None,
    ) -> EvaluationResult:
        # Variants are never exposed on a disabled outcome.
        if not enabled or variant is None:
            return EvaluationResult(key=key, enabled=enabled, reason=reason, evaluated_at=now)
        return EvaluationResult(
            key=key,
            enabled=True,
            reason=reason,
            evaluated_at=now,
            variant=variant.key,
            payload=variant.payload,
        )
