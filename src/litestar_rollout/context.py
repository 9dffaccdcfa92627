"""Evaluation context passed by callers to personalise flag evaluation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

__all__ = ("AttributeValue", "EvaluationContext")

AttributeValue = str | int | float | bool


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Identity and environment data for a single evaluation.

    Attributes:
        user_id: Identifier of the user. Preferred bucketing subject.
        email: User email, addressable by targeting rules as ``email``.
        session_id: Session identifier, used when no user id is known.
        environment: Deployment environment (``production``, ``staging``, ...).
        attributes: Free-form attributes addressable by targeting rules.

    Example:
        >>> ctx = EvaluationContext(user_id="user-123", attributes={"plan": "premium"})
        >>> ctx.get("plan")
        'premium'
    """

    user_id: str | None = None
    email: str | None = None
    session_id: str | None = None
    environment: str | None = None
    attributes: Mapping[str, AttributeValue] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a free-form attribute."""
        return self.attributes.get(name, default)

    def with_attributes(self, **attributes: AttributeValue) -> EvaluationContext:
        """Return a copy of this context with extra attributes merged in."""
        return replace(self, attributes={**self.attributes, **attributes})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EvaluationContext:
        """Build a context from a camelCase or snake_case mapping.

        Useful for adapters that receive the context as JSON.
        """
        return cls(
            user_id=data.get("userId", data.get("user_id")),
            email=data.get("email"),
            session_id=data.get("sessionId", data.get("session_id")),
            environment=data.get("environment"),
            attributes=dict(data.get("attributes") or {}),
        )
