"""Evaluation result records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from litestar_rollout.types import EvaluationReason

__all__ = ("EvaluationResult",)


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Outcome of evaluating one flag for one context.

    Attributes:
        key: The evaluated flag key.
        enabled: Whether the feature is on for this context.
        reason: Which evaluation step decided the outcome.
        evaluated_at: When the evaluation happened (UTC).
        variant: Assigned variant key, only set on enabled results.
        payload: Payload of the assigned variant, if any.
    """

    key: str
    enabled: bool
    reason: EvaluationReason
    evaluated_at: datetime
    variant: str | None = None
    payload: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON shape consumed by HTTP adapters."""
        data: dict[str, Any] = {
            "key": self.key,
            "enabled": self.enabled,
            "reason": self.reason.value,
            "evaluatedAt": self.evaluated_at.isoformat(),
        }
        if self.variant is not None:
            data["variant"] = self.variant
        if self.payload is not None:
            data["payload"] = dict(self.payload)
        return data
