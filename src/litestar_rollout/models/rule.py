"""Targeting rules that force-enable a flag ahead of its rollout."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from litestar_rollout.exceptions import FlagValidationError
from litestar_rollout.types import RuleOperator

__all__ = ("TargetingRule",)


@dataclass(frozen=True, slots=True)
class TargetingRule:
    """Match ``attribute`` against ``value`` using ``operator``.

    ``value`` may be a single string or several; the rule matches when any of
    them satisfies the operator.
    """

    attribute: str
    operator: RuleOperator
    value: str | tuple[str, ...]

    def __init__(self, attribute: str, operator: RuleOperator | str, value: str | Iterable[str]) -> None:
        try:
            op = RuleOperator(operator)
        except ValueError:
            msg = f"Unknown targeting operator {operator!r} for attribute '{attribute}'"
            raise FlagValidationError(msg) from None
        object.__setattr__(self, "attribute", attribute)
        object.__setattr__(self, "operator", op)
        object.__setattr__(self, "value", value if isinstance(value, str) else tuple(str(v) for v in value))

    @property
    def candidates(self) -> tuple[str, ...]:
        return (self.value,) if isinstance(self.value, str) else self.value
