"""Rollout strategies: the tagged union deciding who gets an enabled flag."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar

from litestar_rollout.exceptions import FlagValidationError
from litestar_rollout.types import RolloutType

__all__ = (
    "ROLLOUT_STAGES",
    "BooleanRollout",
    "CohortsRollout",
    "PercentageRollout",
    "RolloutStrategy",
    "ScheduleRollout",
    "UserIdsRollout",
    "ensure_utc",
    "next_rollout_stage",
)

ROLLOUT_STAGES: tuple[int, ...] = (1, 5, 10, 25, 50, 75, 100)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def next_rollout_stage(current: float) -> int | None:
    """Return the first stage above ``current``, or ``None`` once fully rolled out."""
    for stage in ROLLOUT_STAGES:
        if stage > current:
            return stage
    return None


@dataclass(frozen=True, slots=True)
class BooleanRollout:
    """Everyone passing the earlier checks gets the flag."""

    type: ClassVar[RolloutType] = RolloutType.BOOLEAN


@dataclass(frozen=True, slots=True)
class PercentageRollout:
    """A stable ``value`` percent of subjects get the flag."""

    value: float
    type: ClassVar[RolloutType] = RolloutType.PERCENTAGE

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not 0 <= self.value <= 100:
            msg = f"Percentage rollout value must be between 0 and 100, got {self.value!r}"
            raise FlagValidationError(msg)

    @classmethod
    def clamped(cls, value: float) -> PercentageRollout:
        return cls(value=max(0.0, min(100.0, value)))


@dataclass(frozen=True, slots=True)
class UserIdsRollout:
    """Only the listed user ids get the flag."""

    ids: frozenset[str] = field(default_factory=frozenset)
    type: ClassVar[RolloutType] = RolloutType.USER_IDS

    def __init__(self, ids: Iterable[str] = ()) -> None:
        object.__setattr__(self, "ids", frozenset(ids))


@dataclass(frozen=True, slots=True)
class CohortsRollout:
    """Subjects whose ``cohort`` attribute is one of ``names`` get the flag."""

    names: frozenset[str] = field(default_factory=frozenset)
    type: ClassVar[RolloutType] = RolloutType.COHORTS

    def __init__(self, names: Iterable[str] = ()) -> None:
        object.__setattr__(self, "names", frozenset(names))


@dataclass(frozen=True, slots=True)
class ScheduleRollout:
    """The flag is on between ``start_date`` and the optional ``end_date``, inclusive."""

    start_date: datetime
    end_date: datetime | None = None
    type: ClassVar[RolloutType] = RolloutType.SCHEDULE

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        if self.end_date is not None:
            object.__setattr__(self, "end_date", ensure_utc(self.end_date))

    def is_active(self, now: datetime) -> bool:
        now = ensure_utc(now)
        return now >= self.start_date and (self.end_date is None or now <= self.end_date)


RolloutStrategy = BooleanRollout | PercentageRollout | UserIdsRollout | CohortsRollout | ScheduleRollout
