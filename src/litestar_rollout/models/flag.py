"""Feature flag definitions and their create / update inputs."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime
from typing import Any

from litestar_rollout.exceptions import FlagValidationError
from litestar_rollout.models.rollout import BooleanRollout, RolloutStrategy, ensure_utc
from litestar_rollout.models.rule import TargetingRule
from litestar_rollout.models.variant import Variant

__all__ = ("FeatureFlag", "FlagCreate", "FlagUpdate")


def _as_tuple(value: Iterable[Any] | None) -> tuple[Any, ...] | None:
    return None if value is None else tuple(value)


@dataclass(frozen=True, slots=True)
class FeatureFlag:
    """A feature toggle with its rollout strategy.

    Instances are immutable; :meth:`merged` returns an updated copy. Sequences
    passed as lists are stored as tuples so cached flags cannot be mutated by
    callers.
    """

    key: str
    name: str
    enabled: bool = False
    rollout: RolloutStrategy = BooleanRollout()
    description: str | None = None
    variants: tuple[Variant, ...] | None = None
    targeting: tuple[TargetingRule, ...] | None = None
    environments: tuple[str, ...] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", _as_tuple(self.variants))
        object.__setattr__(self, "targeting", _as_tuple(self.targeting))
        object.__setattr__(self, "environments", _as_tuple(self.environments))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        if self.updated_at is not None:
            object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    def merged(self, updates: FlagUpdate, updated_at: datetime) -> FeatureFlag:
        """Shallow-merge ``updates`` into a copy; unspecified fields keep their value."""
        return replace(self, **updates.changes(), updated_at=updated_at)


@dataclass(slots=True)
class FlagCreate:
    """Input for creating a flag. Only ``key`` and ``name`` are required."""

    key: str
    name: str
    description: str | None = None
    enabled: bool | None = None
    rollout: RolloutStrategy | None = None
    variants: Sequence[Variant] | None = None
    targeting: Sequence[TargetingRule] | None = None
    environments: Sequence[str] | None = None
    created_by: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise FlagValidationError("Flag key is required")
        if not self.name:
            raise FlagValidationError(f"Flag name is required for '{self.key}'")

    def build(self, now: datetime | None = None) -> FeatureFlag:
        """Materialise the flag, applying defaults and stamping timestamps."""
        stamp = now or datetime.now(UTC)
        return FeatureFlag(
            key=self.key,
            name=self.name,
            description=self.description,
            enabled=self.enabled if self.enabled is not None else False,
            rollout=self.rollout if self.rollout is not None else BooleanRollout(),
            variants=self.variants,
            targeting=self.targeting,
            environments=self.environments,
            created_at=stamp,
            updated_at=stamp,
            created_by=self.created_by,
        )


@dataclass(slots=True)
class FlagUpdate:
    """Partial update of a flag. ``None`` leaves the stored value untouched."""

    name: str | None = None
    description: str | None = None
    enabled: bool | None = None
    rollout: RolloutStrategy | None = None
    variants: Sequence[Variant] | None = None
    targeting: Sequence[TargetingRule] | None = None
    environments: Sequence[str] | None = None

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
