"""Tests for the rule registry, engine and shared scoring helpers."""

from __future__ import annotations

import math

import pytest

from payment_review.errors import RuleInputError
from payment_review.rules import Rule, RuleRegistry, run_rules
from payment_review.rules.matching import NoteMatcher
from payment_review.rules.ruleset import (
    drg_registry,
    necessity_registry,
    outlier_registry,
    readmission_registry,
)
from payment_review.rules.scoring import (
    OUTLIER_SEVERITY_WEIGHTS,
    SEVERITY_POINTS,
    clamp_score,
    confidence_score,
    severity_score,
)
from payment_review.rules.stats import is_round_number, mean, std_dev, z_score
from payment_review.schemas.common import Severity


class FakeFinding:
    def __init__(self, severity):
        self.severity = severity


def always(value):
    return Rule(f"RULE-{value}", f"Always {value}", "TEST", lambda *_: value)


def never(rule_id="RULE-NEVER"):
    return Rule(rule_id, "Never", "TEST", lambda *_: None)


def unparseable(rule_id="RULE-BAD"):
    def check(*_):
        raise RuleInputError("Blood pressure 'n/a' is not a reading", field="admissionVitals.bloodPressure")

    return Rule(rule_id, "Bad input", "TEST", check)


class TestRuleRegistry:
    """Ordered registration, replacement and lookup."""

    def test_registration_order(self):
        """Test that rules keep registration order."""
        registry = RuleRegistry([always("A"), always("B"), never()])
        assert [r.rule_id for r in registry] == ["RULE-A", "RULE-B", "RULE-NEVER"]
        assert len(registry) == 3

    def test_duplicate_ids_ignored(self):
        """Test that a second rule with the same id is not registered."""
        registry = RuleRegistry([always("A")])
        registry.register(Rule("RULE-A", "Other", "TEST", lambda *_: None))
        assert len(registry) == 1
        assert registry.get("RULE-A").name == "Always A"

    def test_replace_keeps_position(self):
        """Test that replace swaps a rule in place."""
        registry = RuleRegistry([always("A"), always("B")])
        registry.replace(Rule("RULE-A", "Replaced", "TEST", lambda *_: None))
        assert [r.name for r in registry] == ["Replaced", "Always B"]

    def test_replace_unknown(self):
        """Test that replacing an unknown rule raises KeyError."""
        with pytest.raises(KeyError):
            RuleRegistry().replace(always("A"))

    def test_get_missing(self):
        """Test that get returns None for unknown ids."""
        assert RuleRegistry().get("RULE-X") is None

    def test_factories_return_fresh_registries(self):
        """Test that changes to one registry do not leak into the next."""
        first = drg_registry()
        first.register(always("EXTRA"))
        assert len(drg_registry()) == len(first) - 1

    def test_catalog_sizes(self):
        """Test the size of each default catalog."""
        assert len(outlier_registry()) == 7
        assert len(drg_registry()) == 13
        assert len(necessity_registry()) == 10
        assert len(readmission_registry()) == 12


class TestRunRules:
    """Rule evaluation and parse-warning handling."""

    def test_findings_in_rule_order(self):
        """Test that findings follow registration order and None is skipped."""
        registry = RuleRegistry([always("first"), never(), always("second")])
        result = run_rules(registry, object())
        assert result.findings == ["first", "second"]
        assert result.warnings == []

    def test_input_error_skips_rule(self):
        """Test that an unparseable input skips only that rule."""
        registry = RuleRegistry([unparseable(), always("after")])
        result = run_rules(registry, object())
        assert result.findings == ["after"]
        assert result.warnings == []

    def test_strict_records_warning(self):
        """Test that strict mode records the rule id and field path."""
        registry = RuleRegistry([unparseable(), always("after")])
        result = run_rules(registry, object(), strict=True)

        assert result.findings == ["after"]
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.rule_id == "RULE-BAD"
        assert warning.field == "admissionVitals.bloodPressure"
        assert "n/a" in warning.message

    def test_other_errors_propagate(self):
        """Test that errors other than input errors are not swallowed."""
        def broken(*_):
            raise ZeroDivisionError

        with pytest.raises(ZeroDivisionError):
            run_rules(RuleRegistry([Rule("RULE-Z", "Broken", "TEST", broken)]), object())

    def test_cohort_arguments_forwarded(self):
        """Test that every positional argument reaches the check."""
        seen = []
        rule = Rule("RULE-ARGS", "Args", "TEST", lambda *args: seen.append(args))
        run_rules(RuleRegistry([rule]), "PRV-1", ["claim"])
        assert seen == [("PRV-1", ["claim"])]


class TestScoring:
    """Severity weights, clamping and confidence."""

    def test_severity_points(self):
        """Test the per-finding severity weights."""
        findings = [FakeFinding(Severity.CRITICAL), FakeFinding(Severity.HIGH), FakeFinding(Severity.LOW)]
        assert severity_score(findings) == 25 + 15 + 3
        assert severity_score(findings, OUTLIER_SEVERITY_WEIGHTS) == 30 + 20 + 4

    def test_plain_string_severity(self):
        """Test that plain string severities score the same as the enum."""
        assert severity_score([FakeFinding("Medium")]) == SEVERITY_POINTS["Medium"]

    @pytest.mark.parametrize("raw,expected", [(-5, 0), (0, 0), (42.5, 42.5), (100, 100), (180, 100)])
    def test_clamp(self, raw, expected):
        """Test that scores are clamped to 0..100."""
        assert clamp_score(raw) == expected

    def test_confidence(self):
        """Test the clean value, the decrement and the floor."""
        assert confidence_score(0, clean=92, start=90, step=5, floor=55) == 92
        assert confidence_score(2, clean=92, start=90, step=5, floor=55) == 80
        assert confidence_score(20, clean=92, start=90, step=5, floor=55) == 55


class TestStats:
    """Peer-group statistics."""

    def test_mean(self):
        """Test the mean and the empty-sample case."""
        assert mean([1, 2, 3, 6]) == 3
        assert mean([]) == 0

    def test_sample_std_dev(self):
        """Test that the deviation uses the n - 1 denominator."""
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(math.sqrt(32 / 7))
        assert std_dev([5]) == 0

    def test_z_score(self):
        """Test the standard score and the zero-deviation case."""
        assert z_score(14, 10, 2) == 2
        assert z_score(14, 10, 0) == 0

    @pytest.mark.parametrize("amount,expected", [(150, True), (1000.0, True), (137.25, False), (75, False)])
    def test_round_numbers(self, amount, expected):
        """Test that multiples of 50 count as round."""
        assert is_round_number(amount) is expected


class TestNoteMatcher:
    """Case-insensitive keyword matching over notes."""

    def test_case_insensitive(self):
        """Test that matching ignores case on both sides."""
        notes = NoteMatcher("Patient TOLERATING Oral diet")
        assert notes.has("tolerating")
        assert notes.all(["Oral", "diet"])
        assert not notes.any(["icu", "surgery"])

    def test_missing_text(self):
        """Test that None behaves like empty notes."""
        notes = NoteMatcher(None)
        assert len(notes) == 0
        assert not notes.has("anything")

    def test_search(self):
        """Test regex search over lowercased text."""
        match = NoteMatcher("Lactate 4.2 mmol/L").search(r"lactate\s+(\d+\.\d+)")
        assert match.group(1) == "4.2"
