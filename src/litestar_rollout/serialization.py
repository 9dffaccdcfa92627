"""JSON encoding of flags as stored in the shared store.

The stored shape uses camelCase field names and ISO-8601 timestamps so that
flags written by other services using the same store remain readable::

    {"key": "new-ui", "name": "New UI", "enabled": true,
     "rollout": {"type": "percentage", "value": 25},
     "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "..."}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from litestar_rollout.exceptions import FlagDeserializationError, FlagValidationError
from litestar_rollout.models.flag import FeatureFlag, FlagCreate
from litestar_rollout.models.rollout import (
    BooleanRollout,
    CohortsRollout,
    PercentageRollout,
    RolloutStrategy,
    ScheduleRollout,
    UserIdsRollout,
)
from litestar_rollout.models.rule import TargetingRule
from litestar_rollout.models.variant import Variant
from litestar_rollout.types import RolloutType

__all__ = (
    "dump_flag",
    "flag_create_from_dict",
    "flag_from_dict",
    "flag_to_dict",
    "format_timestamp",
    "load_flag",
    "parse_timestamp",
    "rollout_from_dict",
    "rollout_to_dict",
)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def rollout_to_dict(rollout: RolloutStrategy) -> dict[str, Any]:
    data: dict[str, Any] = {"type": rollout.type.value}
    match rollout:
        case PercentageRollout(value=value):
            data["value"] = value
        case UserIdsRollout(ids=ids):
            data["ids"] = sorted(ids)
        case CohortsRollout(names=names):
            data["names"] = sorted(names)
        case ScheduleRollout(start_date=start, end_date=end):
            data["startDate"] = format_timestamp(start)
            if end is not None:
                data["endDate"] = format_timestamp(end)
    return data


def rollout_from_dict(data: Mapping[str, Any]) -> RolloutStrategy:
    """Rebuild a rollout strategy, re-hydrating schedule dates from strings."""
    kind = RolloutType(data["type"])
    if kind is RolloutType.PERCENTAGE:
        return PercentageRollout(value=data["value"])
    if kind is RolloutType.USER_IDS:
        return UserIdsRollout(_typed(data, "ids", list) or ())
    if kind is RolloutType.COHORTS:
        return CohortsRollout(_typed(data, "names", list) or ())
    if kind is RolloutType.SCHEDULE:
        end = data.get("endDate")
        return ScheduleRollout(
            start_date=parse_timestamp(data["startDate"]),
            end_date=parse_timestamp(end) if end else None,
        )
    return BooleanRollout()


def _variant_to_dict(variant: Variant) -> dict[str, Any]:
    data: dict[str, Any] = {"key": variant.key, "name": variant.name, "weight": variant.weight}
    if variant.payload is not None:
        data["payload"] = dict(variant.payload)
    return data


def _rule_to_dict(rule: TargetingRule) -> dict[str, Any]:
    value = rule.value if isinstance(rule.value, str) else list(rule.value)
    return {"attribute": rule.attribute, "operator": rule.operator.value, "value": value}


def flag_to_dict(flag: FeatureFlag) -> dict[str, Any]:
    data: dict[str, Any] = {
        "key": flag.key,
        "name": flag.name,
        "enabled": flag.enabled,
        "rollout": rollout_to_dict(flag.rollout),
    }
    if flag.description is not None:
        data["description"] = flag.description
    if flag.variants is not None:
        data["variants"] = [_variant_to_dict(v) for v in flag.variants]
    if flag.targeting is not None:
        data["targeting"] = [_rule_to_dict(r) for r in flag.targeting]
    if flag.environments is not None:
        data["environments"] = list(flag.environments)
    if flag.created_at is not None:
        data["createdAt"] = format_timestamp(flag.created_at)
    if flag.updated_at is not None:
        data["updatedAt"] = format_timestamp(flag.updated_at)
    if flag.created_by is not None:
        data["createdBy"] = flag.created_by
    return data


def _typed(data: Mapping[str, Any], name: str, kind: type) -> Any:
    """Return ``data[name]`` or ``None``; raise ``TypeError`` when it has the wrong JSON type."""
    value = data.get(name)
    if value is not None and not isinstance(value, kind):
        raise TypeError(f"'{name}' must be {kind.__name__}, not {type(value).__name__}")
    return value


def _required(data: Mapping[str, Any], name: str) -> str:
    value = data[name]
    if not isinstance(value, str):
        raise TypeError(f"'{name}' must be a string, not {type(value).__name__}")
    return value


def _variants_from(data: Mapping[str, Any]) -> list[Variant] | None:
    raw = _typed(data, "variants", list)
    if raw is None:
        return None
    return [
        Variant(key=v["key"], name=v.get("name", v["key"]), weight=v.get("weight", 0), payload=v.get("payload"))
        for v in raw
    ]


def _targeting_from(data: Mapping[str, Any]) -> list[TargetingRule] | None:
    raw = _typed(data, "targeting", list)
    if raw is None:
        return None
    return [TargetingRule(r["attribute"], r["operator"], r["value"]) for r in raw]


def _environments_from(data: Mapping[str, Any]) -> list[str] | None:
    raw = _typed(data, "environments", list)
    if raw is not None and not all(isinstance(env, str) for env in raw):
        raise TypeError("'environments' must be a list of strings")
    return raw


def _rollout_from(data: Mapping[str, Any]) -> RolloutStrategy | None:
    raw = _typed(data, "rollout", dict)
    return rollout_from_dict(raw) if raw else None


def flag_from_dict(data: Mapping[str, Any]) -> FeatureFlag:
    """Rebuild a stored flag.

    Raises:
        KeyError: ``key`` or ``name`` is missing.
        TypeError: A field holds the wrong JSON type, e.g. ``"enabled": "false"``.
    """
    created = _typed(data, "createdAt", str)
    updated = _typed(data, "updatedAt", str)
    enabled = _typed(data, "enabled", bool)
    rollout = _rollout_from(data)
    return FeatureFlag(
        key=_required(data, "key"),
        name=_required(data, "name"),
        description=_typed(data, "description", str),
        enabled=bool(enabled),
        rollout=rollout if rollout is not None else BooleanRollout(),
        variants=_variants_from(data),
        targeting=_targeting_from(data),
        environments=_environments_from(data),
        created_at=parse_timestamp(created) if created else None,
        updated_at=parse_timestamp(updated) if updated else None,
        created_by=_typed(data, "createdBy", str),
    )


def flag_create_from_dict(data: Mapping[str, Any]) -> FlagCreate:
    """Build creation input from a camelCase mapping, e.g. a bootstrap file entry."""
    return FlagCreate(
        key=_typed(data, "key", str) or "",
        name=_typed(data, "name", str) or "",
        description=_typed(data, "description", str),
        enabled=_typed(data, "enabled", bool),
        rollout=_rollout_from(data),
        variants=_variants_from(data),
        targeting=_targeting_from(data),
        environments=_environments_from(data),
        created_by=_typed(data, "createdBy", str),
    )


def dump_flag(flag: FeatureFlag) -> str:
    return json.dumps(flag_to_dict(flag), separators=(",", ":"))


def load_flag(key: str, payload: str) -> FeatureFlag:
    """Decode a stored payload.

    Raises:
        FlagDeserializationError: The payload is not valid JSON or not a valid flag.
    """
    try:
        data = json.loads(payload)
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return flag_from_dict(data)
    except (ValueError, TypeError, KeyError, FlagValidationError) as exc:
        raise FlagDeserializationError(key, str(exc) or type(exc).__name__) from exc
