"""Tests for the review agents and batch orchestration."""

from __future__ import annotations

import logging
import re

import pytest

from payment_review.agents import (
    DRGValidationAgent,
    MedNecessityAgent,
    OutcomeStatus,
    OutlierDetectionAgent,
    ReadmissionAgent,
    build_executive_summary,
    reviewed_results,
)
from payment_review.agents import base as agent_base
from payment_review.backends import ReviewBackend, RuleBasedMedNecessityBackend
from payment_review.errors import RuleInputError
from payment_review.rules import Rule, RuleRegistry
from payment_review.schemas.common import Severity
from payment_review.schemas.drg import DRGValidationStatus
from payment_review.schemas.med_necessity import MedNecessityStatus
from payment_review.schemas.outlier import OutlierFinding
from payment_review.schemas.readmission import ReadmissionReviewStatus

from builders import make_claim, make_drg_claim, make_med_claim, make_readmission_pair, stable_vitals

TIMESTAMP = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z")


class ExplodingBackend(ReviewBackend):
    def evaluate(self, prompt, context):
        raise RuntimeError("backend unavailable")


def outlier_finding(rule_id, severity, impact):
    return OutlierFinding(
        rule_id=rule_id,
        rule_name=rule_id.replace("_", " ").title(),
        severity=severity,
        description="Injected finding",
        recommendation="Investigate",
        estimated_impact=impact,
    )


def only_for(provider, finding):
    return lambda provider_id, claims: finding if provider_id == provider else None


class TestDRGValidationAgent:
    """Single DRG review and reimbursement arithmetic."""

    def test_review_one(self, reference):
        """Test the priced result for a clean claim."""
        result = DRGValidationAgent(reference=reference).review_one(make_drg_claim())

        assert result.claim_id == "DRG-T01"
        assert result.validation_status == DRGValidationStatus.VALIDATED
        assert result.expected_reimbursement == 6370
        assert result.financial_variance == -30
        assert result.risk_score == 0
        assert TIMESTAMP.fullmatch(result.processed_at)

    def test_review_one_from_wire_record(self, reference):
        """Test that a camelCase record is validated before review."""
        record = make_drg_claim().to_wire()
        assert "assignedDRG" in record

        result = DRGValidationAgent(reference=reference).review_one(record)
        assert result.expected_drg == "194"

    def test_variance_drives_risk(self, reference):
        """Test that variance adds one point per $800, capped at 50."""
        agent = DRGValidationAgent(reference=reference)

        near = agent.review_one(make_drg_claim(billed_amount=8770))
        assert near.financial_variance == 6370 - 8770
        assert near.risk_score == 3

        far = agent.review_one(make_drg_claim(billed_amount=106370))
        assert far.risk_score == 50

    def test_apply_to_claim(self, reference):
        """Test that applying a result populates the review fields."""
        claim = make_drg_claim()
        result = DRGValidationAgent(reference=reference).review_one(claim)
        updated = result.apply_to(claim)

        assert updated.validation_status == DRGValidationStatus.VALIDATED
        assert updated.expected_reimbursement == 6370
        assert updated.reviewed_at == result.processed_at
        assert updated.agent_findings == []
        assert claim.validation_status == DRGValidationStatus.PENDING


class TestBatchReview:
    """Per-entity isolation and ordering."""

    def test_bad_record_does_not_abort_batch(self, reference):
        """Test that a record failing validation yields a failed outcome with field errors."""
        bad = make_drg_claim("DRG-BAD").to_wire()
        del bad["billedAmount"]
        batch = [make_drg_claim("DRG-T01"), bad, make_drg_claim("DRG-T03").to_wire()]

        outcomes = DRGValidationAgent(reference=reference).review_batch(batch)

        assert [o.status for o in outcomes] == [
            OutcomeStatus.REVIEWED,
            OutcomeStatus.FAILED,
            OutcomeStatus.REVIEWED,
        ]
        assert [o.entity_id for o in outcomes] == ["DRG-T01", "DRG-BAD", "DRG-T03"]

        error = outcomes[1].error
        assert error.error_type == "ValidationError"
        assert {"field": "billedAmount", "type": "missing"}.items() <= error.fields[0].items()
        assert len(reviewed_results(outcomes)) == 2

    def test_backend_failure_isolated(self):
        """Test that a backend exception is contained to its entity."""
        outcomes = MedNecessityAgent(backend=ExplodingBackend()).review_batch([make_med_claim()])

        assert outcomes[0].status == OutcomeStatus.FAILED
        assert not outcomes[0].ok
        assert outcomes[0].error.error_type == "RuntimeError"
        assert outcomes[0].error.message == "backend unavailable"
        assert outcomes[0].error.fields == []

    def test_review_one_propagates(self):
        """Test that single review does not swallow errors."""
        with pytest.raises(RuntimeError):
            MedNecessityAgent(backend=ExplodingBackend()).review_one(make_med_claim())

    def test_review_selected_order_and_not_found(self, reference):
        """Test that outcomes follow the requested ids and report missing ids."""
        collection = [make_drg_claim("DRG-T01"), make_drg_claim("DRG-T02"), make_drg_claim("DRG-T03")]
        outcomes = DRGValidationAgent(reference=reference).review_selected(
            collection, ["DRG-T03", "DRG-404", "DRG-T01"]
        )

        assert [(o.entity_id, o.status) for o in outcomes] == [
            ("DRG-T03", OutcomeStatus.REVIEWED),
            ("DRG-404", OutcomeStatus.NOT_FOUND),
            ("DRG-T01", OutcomeStatus.REVIEWED),
        ]
        assert outcomes[1].result is None
        assert [r.claim_id for r in reviewed_results(outcomes)] == ["DRG-T03", "DRG-T01"]

    def test_strict_warnings_on_outcome(self):
        """Test that rule parse warnings travel with the outcome."""
        claim = make_med_claim(admission_vitals={**stable_vitals(), "blood_pressure": "pending"})
        agent = MedNecessityAgent(backend=RuleBasedMedNecessityBackend(strict=True))

        outcome = agent.review_batch([claim])[0]

        assert outcome.ok
        assert [w.rule_id for w in outcome.warnings] == ["RULE-MN-SI-001"]

    def test_delay_between_items_only(self, monkeypatch):
        """Test that the batch delay is applied between items, not before the first."""
        sleeps = []
        monkeypatch.setattr(agent_base.time, "sleep", sleeps.append)

        agent = ReadmissionAgent(batch_delay_ms=150)
        agent.review_batch([make_readmission_pair("RA-1"), make_readmission_pair("RA-2"), make_readmission_pair("RA-3")])

        assert sleeps == [0.15, 0.15]

    def test_no_delay_by_default(self, monkeypatch):
        """Test that a zero delay never sleeps."""
        sleeps = []
        monkeypatch.setattr(agent_base.time, "sleep", sleeps.append)

        ReadmissionAgent(batch_delay_ms=0).review_batch([make_readmission_pair("RA-1"), make_readmission_pair("RA-2")])
        assert sleeps == []


class TestVerticalRiskScores:
    """Final risk score blending per vertical."""

    def test_med_necessity_clean(self):
        """Test that a clean admission scores 0.6 of its baseline denial risk."""
        result = MedNecessityAgent().review_one(make_med_claim())

        assert result.med_necessity_status == MedNecessityStatus.MEETS_CRITERIA
        assert result.denial_risk == 10
        assert result.risk_score == 6

    def test_readmission_clean(self):
        """Test that an unrelated pair scores 0.4 of its baseline preventability."""
        result = ReadmissionAgent().review_one(make_readmission_pair())

        assert result.pair_id == "RA-T01"
        assert result.review_status == ReadmissionReviewStatus.NOT_RELATED
        assert result.risk_score == 4

    def test_readmission_apply_to(self):
        """Test that applying a readmission result stamps reviewed_at."""
        pair = make_readmission_pair()
        result = ReadmissionAgent().review_one(pair)
        updated = result.apply_to(pair)

        assert updated.review_status == ReadmissionReviewStatus.NOT_RELATED
        assert updated.reviewed_at == result.processed_at
        assert updated.risk_score == 4


class TestOutlierDetectionAgent:
    """Provider analysis, ordering and the executive summary."""

    def test_clean_population(self, claim_population):
        """Test that an ordinary population flags no providers."""
        report = OutlierDetectionAgent(batch_delay_ms=0).analyze_all(claim_population)

        assert report.total_claims == 12
        assert report.total_providers == 3
        assert report.flagged_providers == 0
        assert report.critical_providers == 0
        assert report.total_estimated_exposure == 0
        assert [r.provider_id for r in report.provider_results] == ["PRV-A", "PRV-B", "PRV-C"]
        assert report.executive_summary.startswith(
            "Outlier detection complete across 3 providers and 12 claims. No statistically significant"
        )
        assert TIMESTAMP.fullmatch(report.generated_at)
        assert report.failed == []

    def test_wire_records_accepted(self, claim_population):
        """Test that camelCase claim records are accepted."""
        records = [c.to_wire() for c in claim_population]
        report = OutlierDetectionAgent(batch_delay_ms=0).analyze_all(records)
        assert report.total_claims == 12

    def test_flagged_provider_sorted_first(self, claim_population):
        """Test that the riskiest provider leads and drives the summary."""
        registry = RuleRegistry(
            [
                Rule(
                    "DUPLICATE_BILLING",
                    "Duplicate Billing",
                    "PATTERN",
                    only_for("PRV-B", outlier_finding("DUPLICATE_BILLING", Severity.CRITICAL, 500)),
                ),
                Rule(
                    "AMOUNT_OUTLIER",
                    "Amount Outlier",
                    "STATISTICAL",
                    only_for("PRV-B", outlier_finding("AMOUNT_OUTLIER", Severity.HIGH, 500)),
                ),
            ]
        )
        report = OutlierDetectionAgent(registry=registry, batch_delay_ms=0).analyze_all(claim_population)

        leader = report.provider_results[0]
        assert leader.provider_id == "PRV-B"
        assert leader.risk_score == 30 + 20 + 40
        assert [f.rule_id for f in leader.findings] == ["DUPLICATE_BILLING", "AMOUNT_OUTLIER"]
        assert [r.provider_id for r in report.provider_results[1:]] == ["PRV-A", "PRV-C"]
        assert report.flagged_providers == 1
        assert report.critical_providers == 1
        assert report.total_estimated_exposure == 1000
        assert report.executive_summary == (
            "Outlier detection identified 1 of 3 providers with anomalous billing patterns (1 critical). "
            "Estimated financial exposure: $1,000. Most prevalent finding: DUPLICATE BILLING. "
            "Highest-risk provider: Provider PRV-B (risk score 90/100). Immediate investigation "
            "recommended for all critical-risk providers."
        )

    def test_bad_claim_record_does_not_abort_report(self, claim_population, caplog):
        """Test that a malformed claim is reported by id and the other providers are still analyzed."""
        records = [c.to_wire() for c in claim_population]
        bad = make_claim("PRV-Z-0", "PRV-Z").to_wire()
        del bad["amount"]

        with caplog.at_level(logging.WARNING):
            report = OutlierDetectionAgent(batch_delay_ms=0).analyze_all(records + [bad])

        assert [r.provider_id for r in report.provider_results] == ["PRV-A", "PRV-B", "PRV-C"]
        assert report.total_claims == 12
        assert report.total_providers == 3
        assert len(report.failed) == 1
        failure = report.failed[0]
        assert failure.entity_id == "PRV-Z-0"
        assert failure.error_type == "ValidationError"
        assert failure.fields == [{"field": "amount", "error": "Field required", "type": "missing"}]
        assert report.to_wire()["failed"][0]["entityId"] == "PRV-Z-0"
        assert "Claim PRV-Z-0 failed validation" in caplog.text

    def test_provider_failure_isolated(self, claim_population):
        """Test that an exception while analyzing one provider leaves the others in the report."""
        def unavailable_for_b(provider_id, claims):
            if provider_id == "PRV-B":
                raise RuntimeError("peer data unavailable")
            return None

        agent = OutlierDetectionAgent(
            registry=RuleRegistry([Rule("AMOUNT_OUTLIER", "Amount Outlier", "STATISTICAL", unavailable_for_b)]),
            batch_delay_ms=0,
        )
        report = agent.analyze_all(claim_population)

        assert [r.provider_id for r in report.provider_results] == ["PRV-A", "PRV-C"]
        assert report.total_providers == 2
        assert [(f.entity_id, f.error_type, f.message) for f in report.failed] == [
            ("PRV-B", "RuntimeError", "peer data unavailable")
        ]
        assert report.failed[0].fields == []
        with pytest.raises(RuntimeError):
            agent.analyze_provider("PRV-B", claim_population)

    def test_findings_keep_rule_order(self, claim_population):
        """Test that provider findings are not re-sorted by severity."""
        registry = RuleRegistry(
            [
                Rule(
                    "ROUND_NUMBER_BILLING",
                    "Round Number Billing",
                    "PATTERN",
                    only_for("PRV-A", outlier_finding("ROUND_NUMBER_BILLING", Severity.LOW, 10)),
                ),
                Rule(
                    "DUPLICATE_BILLING",
                    "Duplicate Billing",
                    "PATTERN",
                    only_for("PRV-A", outlier_finding("DUPLICATE_BILLING", Severity.CRITICAL, 10)),
                ),
            ]
        )
        result = OutlierDetectionAgent(registry=registry).analyze_provider("PRV-A", claim_population)

        assert [f.rule_id for f in result.findings] == ["ROUND_NUMBER_BILLING", "DUPLICATE_BILLING"]

    def test_empty_registry_is_respected(self, claim_population):
        """Test that an injected empty registry runs no rules."""
        agent = OutlierDetectionAgent(registry=RuleRegistry(), batch_delay_ms=0)
        assert agent.analyze_provider("PRV-A", claim_population).findings == []

    def test_unknown_provider(self, claim_population):
        """Test that a provider with no claims is named by its id."""
        result = OutlierDetectionAgent().analyze_provider("PRV-Z", claim_population)

        assert result.provider_name == "PRV-Z"
        assert result.claim_count == 0
        assert result.total_billed == 0

    def test_strict_warnings_logged(self, claim_population, caplog):
        """Test that outlier parse warnings are logged with the rule id."""
        def unparseable(provider_id, claims):
            raise RuleInputError("Unparseable service date 'soon'", field="serviceDate")

        agent = OutlierDetectionAgent(
            registry=RuleRegistry([Rule("DUPLICATE_BILLING", "Duplicate Billing", "PATTERN", unparseable)]),
            strict=True,
        )
        with caplog.at_level(logging.WARNING):
            agent.analyze_provider("PRV-A", claim_population)

        assert "rule DUPLICATE_BILLING skipped" in caplog.text

    def test_executive_summary_single_provider(self, claim_population):
        """Test singular wording for a one-provider portfolio."""
        result = OutlierDetectionAgent(
            registry=RuleRegistry(
                [
                    Rule(
                        "ROUND_NUMBER_BILLING",
                        "Round Number Billing",
                        "PATTERN",
                        only_for("PRV-A", outlier_finding("ROUND_NUMBER_BILLING", Severity.MEDIUM, 750)),
                    )
                ]
            )
        ).analyze_provider("PRV-A", claim_population)

        summary = build_executive_summary([result], 4, 1, 0, 750)
        assert summary.startswith("Outlier detection identified 1 of 1 provider with anomalous billing patterns")
        assert "Most prevalent finding: ROUND NUMBER BILLING." in summary
