"""Tests for targeting rule matching."""

from __future__ import annotations

import logging

import pytest

from litestar_rollout import EvaluationContext, RuleOperator, TargetingRule
from litestar_rollout.targeting import AttributeResolver, TargetingMatcher, matches_operator


@pytest.fixture
def matcher() -> TargetingMatcher:
    return TargetingMatcher()


class TestAttributeResolver:
    """Tests for resolving rule attributes from a context."""

    def test_well_known_attributes(self) -> None:
        resolver = AttributeResolver()
        ctx = EvaluationContext(user_id="user-1", email="dev@example.com")
        assert resolver.resolve("userId", ctx) == "user-1"
        assert resolver.resolve("email", ctx) == "dev@example.com"

    def test_free_form_attribute(self) -> None:
        ctx = EvaluationContext(attributes={"plan": "premium"})
        assert AttributeResolver().resolve("plan", ctx) == "premium"

    def test_missing_attribute(self) -> None:
        assert AttributeResolver().resolve("plan", EvaluationContext()) is None

    def test_empty_string_counts_as_absent(self) -> None:
        ctx = EvaluationContext(email="", attributes={"plan": ""})
        resolver = AttributeResolver()
        assert resolver.resolve("email", ctx) is None
        assert resolver.resolve("plan", ctx) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(True, "true"), (False, "false"), (3, "3"), (2.0, "2"), (2.5, "2.5")],
    )
    def test_non_string_values_are_stringified(self, raw: object, expected: str) -> None:
        ctx = EvaluationContext(attributes={"value": raw})  # type: ignore[dict-item]
        assert AttributeResolver().resolve("value", ctx) == expected


class TestOperators:
    """Tests for each operator."""

    @pytest.mark.parametrize(
        ("operator", "value", "candidates", "expected"),
        [
            (RuleOperator.EQUALS, "premium", ("premium",), True),
            (RuleOperator.EQUALS, "premium", ("Premium",), False),
            (RuleOperator.CONTAINS, "dev@example.com", ("@example",), True),
            (RuleOperator.CONTAINS, "dev@other.com", ("@example",), False),
            (RuleOperator.STARTS_WITH, "admin-7", ("admin-",), True),
            (RuleOperator.STARTS_WITH, "user-7", ("admin-",), False),
            (RuleOperator.ENDS_WITH, "dev@example.com", ("@example.com",), True),
            (RuleOperator.ENDS_WITH, "dev@example.org", ("@example.com",), False),
            (RuleOperator.IN, "CA", ("US", "CA"), True),
            (RuleOperator.IN, "UK", ("US", "CA"), False),
            (RuleOperator.REGEX, "user-42", (r"^user-\d+$",), True),
            (RuleOperator.REGEX, "admin-42", (r"^user-\d+$",), False),
        ],
    )
    def test_operator(self, operator: RuleOperator, value: str, candidates: tuple[str, ...], expected: bool) -> None:
        assert matches_operator(operator, value, candidates) is expected

    def test_regex_is_unanchored_search(self) -> None:
        assert matches_operator(RuleOperator.REGEX, "team-beta-7", ("beta",))

    def test_any_candidate_matches(self) -> None:
        assert matches_operator(RuleOperator.ENDS_WITH, "a@corp.io", ("@example.com", "@corp.io"))

    def test_invalid_regex_never_matches(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="litestar_rollout.targeting"):
            assert not matches_operator(RuleOperator.REGEX, "anything", ("([unclosed",))
        assert "Invalid targeting regex" in caplog.text


class TestTargetingMatcher:
    """Tests for ordered rule evaluation."""

    def test_first_match_wins(self, matcher: TargetingMatcher) -> None:
        rules = [
            TargetingRule("plan", "equals", "premium"),
            TargetingRule("country", "in", ["US", "CA"]),
        ]
        ctx = EvaluationContext(attributes={"plan": "premium", "country": "US"})
        assert matcher.first_match(rules, ctx) is rules[0]

    def test_later_rule_can_match(self, matcher: TargetingMatcher) -> None:
        rules = [
            TargetingRule("plan", "equals", "premium"),
            TargetingRule("country", "in", ["US", "CA"]),
        ]
        ctx = EvaluationContext(attributes={"plan": "free", "country": "CA"})
        assert matcher.first_match(rules, ctx) is rules[1]

    def test_no_match(self, matcher: TargetingMatcher) -> None:
        rules = [TargetingRule("plan", "equals", "premium")]
        assert matcher.first_match(rules, EvaluationContext(attributes={"plan": "free"})) is None

    def test_absent_attribute_never_matches(self, matcher: TargetingMatcher) -> None:
        rule = TargetingRule("email", "contains", "")
        assert not matcher.rule_matches(rule, EvaluationContext())

    def test_user_id_rule(self, matcher: TargetingMatcher) -> None:
        rule = TargetingRule("userId", "startsWith", "internal-")
        assert matcher.rule_matches(rule, EvaluationContext(user_id="internal-9"))
        assert not matcher.rule_matches(rule, EvaluationContext(user_id="user-9"))
