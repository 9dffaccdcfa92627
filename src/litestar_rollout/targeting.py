"""Targeting rule matching.

Rules address a small closed set of well-known attributes (``userId`` and
``email``) plus the free-form attribute bag of the context. Every attribute
value is compared in its string form.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from litestar_rollout.types import RuleOperator

if TYPE_CHECKING:
    from litestar_rollout.context import EvaluationContext
    from litestar_rollout.models.rule import TargetingRule

__all__ = ("AttributeResolver", "TargetingMatcher", "matches_operator")

logger = logging.getLogger(__name__)


class AttributeResolver:
    """Resolve a rule attribute name to a string value from a context."""

    WELL_KNOWN: dict[str, Callable[[EvaluationContext], Any]] = {
        "userId": lambda ctx: ctx.user_id,
        "email": lambda ctx: ctx.email,
    }

    def resolve(self, attribute: str, context: EvaluationContext) -> str | None:
        """Return the attribute as a string, or ``None`` when it is absent.

        ``None`` and empty strings both count as absent.
        """
        getter = self.WELL_KNOWN.get(attribute)
        raw = getter(context) if getter is not None else context.get(attribute)
        if raw is None:
            return None
        value = _stringify(raw)
        return value or None


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as exc:
        logger.warning("Invalid targeting regex %r: %s", pattern, exc, extra={"pattern": pattern})
        return None


def _regex_matches(value: str, pattern: str) -> bool:
    compiled = _compile(pattern)
    return compiled is not None and compiled.search(value) is not None


_OPERATORS: dict[RuleOperator, Callable[[str, str], bool]] = {
    RuleOperator.EQUALS: lambda value, candidate: value == candidate,
    RuleOperator.IN: lambda value, candidate: value == candidate,
    RuleOperator.CONTAINS: lambda value, candidate: candidate in value,
    RuleOperator.STARTS_WITH: lambda value, candidate: value.startswith(candidate),
    RuleOperator.ENDS_WITH: lambda value, candidate: value.endswith(candidate),
    RuleOperator.REGEX: _regex_matches,
}


def matches_operator(operator: RuleOperator, value: str, candidates: Sequence[str]) -> bool:
    """Check whether any candidate satisfies ``operator`` against ``value``."""
    predicate = _OPERATORS[operator]
    return any(predicate(value, candidate) for candidate in candidates)


class TargetingMatcher:
    """Evaluate ordered targeting rules; the first matching rule wins."""

    def __init__(self, resolver: AttributeResolver | None = None) -> None:
        self.resolver = resolver or AttributeResolver()

    def rule_matches(self, rule: TargetingRule, context: EvaluationContext) -> bool:
        value = self.resolver.resolve(rule.attribute, context)
        if value is None:
            return False
        return matches_operator(rule.operator, value, rule.candidates)

    def first_match(self, rules: Sequence[TargetingRule], context: EvaluationContext) -> TargetingRule | None:
        for rule in rules:
            if self.rule_matches(rule, context):
                return rule
        return None
