"""Tests for the provider outlier detection rules."""

from __future__ import annotations

import pytest

from payment_review.rules.categories.outlier_rules import (
    OUTLIER_RULES,
    detect_amount_outlier,
    detect_beneficiary_churning,
    detect_duplicate_billing,
    detect_high_frequency_billing,
    detect_provider_amount_pattern,
    detect_risk_score_concentration,
    detect_round_number_billing,
)
from payment_review.schemas.common import Severity

from builders import make_claim


def _single_claim_providers(count: int) -> list:
    return [make_claim(f"OTHER-{n}", f"PRV-O{n}") for n in range(count)]


class TestDuplicateBilling:
    """Same beneficiary + procedure within seven days."""

    def test_pair_within_window_is_high(self):
        """Test that one duplicate pair is flagged High with both claim ids."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", service_date="2024-03-01", amount=200),
            make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-04", amount=250),
        ]
        finding = detect_duplicate_billing("PRV-1", claims)

        assert finding is not None
        assert finding.severity == Severity.HIGH
        assert finding.affected_claim_ids == ["C1", "C2"]
        assert finding.estimated_impact == 450

    def test_four_duplicate_claims_is_critical(self):
        """Test that four or more affected claims escalate to Critical."""
        claims = [
            make_claim(f"C{n}", beneficiary_id="BEN-X", service_date=f"2024-03-0{n + 1}")
            for n in range(4)
        ]
        finding = detect_duplicate_billing("PRV-1", claims)

        assert finding is not None
        assert finding.severity == Severity.CRITICAL
        assert len(finding.affected_claim_ids) == 4

    def test_outside_window_not_flagged(self):
        """Test that claims eight days apart are not duplicates."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", service_date="2024-03-01"),
            make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-09"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is None

    def test_seven_days_apart_is_flagged(self):
        """Test that the seven-day boundary is inclusive."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", service_date="2024-03-01"),
            make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-08"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is not None

    def test_time_of_day_counts_toward_window(self):
        """Test that timestamps seven and a half days apart fall outside the window."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", service_date="2024-03-01T00:00:00.000Z"),
            make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-08T12:00:00.000Z"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is None

    def test_different_procedure_not_flagged(self):
        """Test that a different procedure code is not a duplicate."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", procedure_code="99213"),
            make_claim("C2", beneficiary_id="BEN-X", procedure_code="99214"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is None

    def test_unparseable_date_never_paired(self):
        """Test that a claim with an invalid service date is skipped."""
        claims = [
            make_claim("C1", beneficiary_id="BEN-X", service_date="not-a-date"),
            make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-02"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is None

    def test_order_does_not_change_affected_set(self):
        """Test that passing the pair in either order flags the same claims."""
        first = make_claim("C1", beneficiary_id="BEN-X", service_date="2024-03-01")
        second = make_claim("C2", beneficiary_id="BEN-X", service_date="2024-03-05")

        forward = detect_duplicate_billing("PRV-1", [first, second])
        backward = detect_duplicate_billing("PRV-1", [second, first])

        assert set(forward.affected_claim_ids) == set(backward.affected_claim_ids) == {"C1", "C2"}
        assert forward.severity == backward.severity

    def test_other_provider_claims_ignored(self):
        """Test that duplicates across providers are not attributed."""
        claims = [
            make_claim("C1", "PRV-1", beneficiary_id="BEN-X"),
            make_claim("C2", "PRV-2", beneficiary_id="BEN-X"),
        ]
        assert detect_duplicate_billing("PRV-1", claims) is None


class TestHighFrequencyBilling:
    """Claim volume compared with peer providers."""

    def test_requires_three_providers(self):
        """Test that two providers never produce a finding."""
        claims = [make_claim(f"A{n}", "PRV-A") for n in range(20)] + [make_claim("B0", "PRV-B")]
        assert detect_high_frequency_billing("PRV-A", claims) is None

    def test_high_volume_provider_flagged_high(self):
        """Test that z between 2 and 3 is High."""
        claims = [make_claim(f"A{n}", "PRV-A", amount=100) for n in range(10)] + _single_claim_providers(9)
        finding = detect_high_frequency_billing("PRV-A", claims)

        assert finding is not None
        assert finding.severity == Severity.HIGH
        assert finding.estimated_impact == 1000
        assert len(finding.affected_claim_ids) == 10
        assert finding.stat_detail.startswith("z=2.85")

    def test_extreme_volume_is_critical(self):
        """Test that z above 3 is Critical."""
        claims = [make_claim(f"A{n}", "PRV-A") for n in range(12)] + _single_claim_providers(11)
        finding = detect_high_frequency_billing("PRV-A", claims)

        assert finding is not None
        assert finding.severity == Severity.CRITICAL

    def test_equal_volumes_not_flagged(self, claim_population):
        """Test that a zero-deviation peer group yields no finding."""
        assert detect_high_frequency_billing("PRV-A", claim_population) is None


class TestAmountOutlier:
    """Per-procedure average amount compared with peers."""

    def _claims(self, provider_amount: float) -> list:
        peers = [
            make_claim(f"P{n}", f"PRV-P{n}", amount=amount)
            for n, amount in enumerate((100.0, 110.0, 120.0, 105.0, 115.0))
        ]
        provider = [make_claim(f"A{n}", "PRV-A", amount=provider_amount) for n in range(3)]
        return peers + provider

    def test_elevated_amounts_flagged_high(self):
        """Test that excess under $5,000 is High with rounded excess impact."""
        finding = detect_amount_outlier("PRV-A", self._claims(500.0))

        assert finding is not None
        assert finding.severity == Severity.HIGH
        assert finding.estimated_impact == 1170
        assert finding.affected_claim_ids == ["A0", "A1", "A2"]
        assert "99213" in finding.description

    def test_large_excess_is_critical(self):
        """Test that total excess over $5,000 is Critical."""
        finding = detect_amount_outlier("PRV-A", self._claims(3000.0))

        assert finding is not None
        assert finding.severity == Severity.CRITICAL
        assert finding.estimated_impact == 8670

    def test_requires_three_provider_claims(self):
        """Test that a provider with two claims is skipped."""
        claims = self._claims(3000.0)[:-1]
        assert detect_amount_outlier("PRV-A", claims) is None

    def test_requires_three_peer_claims(self):
        """Test that fewer than three peer amounts for the code is skipped."""
        claims = self._claims(3000.0)[3:]
        assert detect_amount_outlier("PRV-A", claims) is None

    def test_in_range_amounts_not_flagged(self):
        """Test that peer-level amounts produce no finding."""
        assert detect_amount_outlier("PRV-A", self._claims(112.0)) is None


class TestProviderAmountPattern:
    """Average claim amount compared with providers that have three or more claims."""

    def _claims(self, outlier_amount: float) -> list:
        claims = []
        for p in range(6):
            claims += [make_claim(f"P{p}-{n}", f"PRV-P{p}", amount=100.0 + p) for n in range(3)]
        claims += [make_claim(f"A{n}", "PRV-A", amount=outlier_amount) for n in range(3)]
        return claims

    def test_elevated_average_flagged(self):
        """Test that an average far above six peers is flagged High."""
        finding = detect_provider_amount_pattern("PRV-A", self._claims(1000.0))

        assert finding is not None
        assert finding.severity == Severity.HIGH
        assert finding.affected_claim_ids == ["A0", "A1", "A2"]
        assert finding.estimated_impact > 0

    def test_provider_with_two_claims_skipped(self):
        """Test that the provider itself needs three claims."""
        claims = self._claims(1000.0)[:-1]
        assert detect_provider_amount_pattern("PRV-A", claims) is None

    def test_below_three_qualifying_providers_skipped(self):
        """Test that fewer than three providers with three claims yields None."""
        claims = [make_claim(f"A{n}", "PRV-A", amount=1000) for n in range(3)]
        claims += [make_claim(f"B{n}", "PRV-B", amount=100) for n in range(3)]
        claims += [make_claim("C0", "PRV-C", amount=100)]
        assert detect_provider_amount_pattern("PRV-A", claims) is None


class TestBeneficiaryChurning:
    """Beneficiaries appearing unusually often across the dataset."""

    def test_single_churned_beneficiary_is_medium(self):
        """Test that one high-frequency beneficiary yields Medium."""
        claims = [
            make_claim(f"A{n}", "PRV-A", beneficiary_id="BEN-X", service_date=f"2024-0{n + 1}-01")
            for n in range(8)
        ]
        claims += [make_claim(f"O{n}", f"PRV-O{n}") for n in range(10)]
        finding = detect_beneficiary_churning("PRV-A", claims)

        assert finding is not None
        assert finding.severity == Severity.MEDIUM
        assert finding.description.startswith("1 beneficiary ")
        assert len(finding.affected_claim_ids) == 8

    def test_uniform_appearances_not_flagged(self, claim_population):
        """Test that beneficiaries appearing once each produce no finding."""
        assert detect_beneficiary_churning("PRV-A", claim_population) is None

    def test_requires_three_provider_claims(self):
        """Test that a provider with two claims is skipped."""
        claims = [make_claim(f"A{n}", "PRV-A", beneficiary_id="BEN-X") for n in range(2)]
        claims += [make_claim(f"O{n}", f"PRV-O{n}") for n in range(10)]
        assert detect_beneficiary_churning("PRV-A", claims) is None


class TestRoundNumberBilling:
    """Share of claims billed in multiples of $50."""

    def _claims(self, amounts: list[float]) -> list:
        return [make_claim(f"C{n}", amount=amount) for n, amount in enumerate(amounts)]

    def test_exactly_eighty_percent_is_medium(self):
        """Test that a ratio of exactly 0.8 does not exceed the High threshold."""
        finding = detect_round_number_billing("PRV-1", self._claims([100, 150, 200, 300, 137.42]))

        assert finding is not None
        assert finding.severity == Severity.MEDIUM
        assert finding.estimated_impact == 750
        assert finding.affected_claim_ids == ["C0", "C1", "C2", "C3"]
        assert finding.stat_detail == "4/5 claims (80%) are round numbers"

    def test_all_round_is_high(self):
        """Test that a ratio above 0.8 is High."""
        finding = detect_round_number_billing("PRV-1", self._claims([100, 150, 200, 300, 450]))

        assert finding is not None
        assert finding.severity == Severity.HIGH

    def test_half_round_not_flagged(self):
        """Test that a ratio of 0.5 or less does not fire."""
        amounts = [100, 150, 200, 101.5, 99.99, 87.25]
        assert detect_round_number_billing("PRV-1", self._claims(amounts)) is None

    def test_requires_five_claims(self):
        """Test that four claims is below the minimum sample."""
        assert detect_round_number_billing("PRV-1", self._claims([100, 150, 200, 300])) is None


class TestRiskScoreConcentration:
    """Share of claims with a risk score of 70 or more."""

    def _claims(self, scores: list[float]) -> list:
        return [make_claim(f"C{n}", risk_score=score) for n, score in enumerate(scores)]

    def test_three_of_four_is_high(self):
        """Test that 75% concentration is High and 70 counts as high-risk."""
        finding = detect_risk_score_concentration("PRV-1", self._claims([70, 85, 92, 10]))

        assert finding is not None
        assert finding.severity == Severity.HIGH
        assert finding.affected_claim_ids == ["C0", "C1", "C2"]

    def test_all_high_risk_is_critical(self):
        """Test that concentration above 80% is Critical."""
        finding = detect_risk_score_concentration("PRV-1", self._claims([75, 80, 90, 95, 99]))

        assert finding is not None
        assert finding.severity == Severity.CRITICAL

    def test_sixty_percent_not_flagged(self):
        """Test that exactly 60% does not fire."""
        assert detect_risk_score_concentration("PRV-1", self._claims([80, 80, 80, 10, 10])) is None

    def test_requires_four_claims(self):
        """Test that three claims is below the minimum sample."""
        assert detect_risk_score_concentration("PRV-1", self._claims([90, 90, 90])) is None


class TestOutlierCatalog:
    """The ordered outlier rule catalog."""

    def test_rule_order(self):
        """Test that rules are registered in report order."""
        assert [r.rule_id for r in OUTLIER_RULES] == [
            "DUPLICATE_BILLING",
            "HIGH_FREQUENCY_BILLING",
            "AMOUNT_STATISTICAL_OUTLIER",
            "PROVIDER_AMOUNT_PATTERN",
            "BENEFICIARY_CHURNING",
            "ROUND_NUMBER_BILLING",
            "RISK_SCORE_CONCENTRATION",
        ]

    @pytest.mark.parametrize("rule", OUTLIER_RULES, ids=lambda r: r.rule_id)
    def test_clean_population_produces_no_findings(self, rule, claim_population):
        """Test that an ordinary population triggers no outlier rule."""
        for provider_id in ("PRV-A", "PRV-B", "PRV-C"):
            assert rule(provider_id, claim_population) is None
