"""Enumerations shared across litestar-rollout."""

from __future__ import annotations

from enum import StrEnum

__all__ = (
    "CacheState",
    "EvaluationReason",
    "HealthStatus",
    "RolloutType",
    "RuleOperator",
)


class RolloutType(StrEnum):
    """Rollout strategy discriminator, as stored in the ``type`` field."""

    BOOLEAN = "boolean"
    PERCENTAGE = "percentage"
    USER_IDS = "userIds"
    COHORTS = "cohorts"
    SCHEDULE = "schedule"


class RuleOperator(StrEnum):
    """Operators available to targeting rules."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    REGEX = "regex"


class EvaluationReason(StrEnum):
    """Why an evaluation produced its result.

    ``ENVIRONMENT_MATCH`` is returned when the effective environment is *not*
    in the flag's allow-list. The label is kept as-is for compatibility with
    existing consumers of the reason codes.
    """

    FLAG_NOT_FOUND = "FLAG_NOT_FOUND"
    FLAG_DISABLED = "FLAG_DISABLED"
    ENVIRONMENT_MATCH = "ENVIRONMENT_MATCH"
    TARGETING_MATCH = "TARGETING_MATCH"
    PERCENTAGE_ROLLOUT = "PERCENTAGE_ROLLOUT"
    USER_ID_MATCH = "USER_ID_MATCH"
    COHORT_MATCH = "COHORT_MATCH"
    SCHEDULE_ACTIVE = "SCHEDULE_ACTIVE"
    DEFAULT = "DEFAULT"


class CacheState(StrEnum):
    """Lifecycle of a cached flag entry."""

    FRESH = "fresh"
    STALE = "stale"
    REFETCHING = "refetching"


class HealthStatus(StrEnum):
    """Overall health of the flag service."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
