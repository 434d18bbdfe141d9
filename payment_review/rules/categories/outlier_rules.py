"""Provider outlier detection rules.

Each rule compares one provider against the full claims population and
returns at most one ``OutlierFinding``. Peer statistics are recomputed on
every call; below the minimum peer-group size a rule returns None.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from payment_review.rules.models import Rule
from payment_review.rules.stats import is_round_number, mean, std_dev, z_score
from payment_review.schemas.claims import Claim
from payment_review.schemas.common import Severity
from payment_review.schemas.outlier import OutlierFinding
from payment_review.utils import days_apart, round_half_up, to_fixed

DUPLICATE_WINDOW_DAYS = 7
HIGH_RISK_CLAIM_SCORE = 70


def _provider_claims(provider_id: str, claims: Sequence[Claim]) -> list[Claim]:
    return [c for c in claims if c.provider_id == provider_id]


def _provider_ids(claims: Sequence[Claim]) -> list[str]:
    """Distinct provider ids in first-seen order."""
    return list(dict.fromkeys(c.provider_id for c in claims))


def _percent(ratio: float) -> str:
    return to_fixed(ratio * 100)


def detect_duplicate_billing(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """Same beneficiary and procedure code billed twice within seven days.

    Claims whose service date cannot be parsed are never paired.
    """
    provider_claims = _provider_claims(provider_id, claims)
    duplicates: list[str] = []

    for i, first in enumerate(provider_claims):
        for second in provider_claims[i + 1:]:
            if first.beneficiary_id != second.beneficiary_id:
                continue
            if first.procedure_code != second.procedure_code:
                continue
            gap = days_apart(first.service_date, second.service_date)
            if gap is None or gap > DUPLICATE_WINDOW_DAYS:
                continue
            for claim_id in (first.id, second.id):
                if claim_id not in duplicates:
                    duplicates.append(claim_id)

    if not duplicates:
        return None

    impact = sum(c.amount for c in provider_claims if c.id in duplicates)
    count = len(duplicates)

    return OutlierFinding(
        rule_id="DUPLICATE_BILLING",
        rule_name="Duplicate Billing",
        severity=Severity.CRITICAL if count >= 4 else Severity.HIGH,
        description=(
            f"Provider submitted {count} claims for the same beneficiary + procedure code "
            "within a 7-day window. Duplicate billing may indicate systematic overbilling "
            "or billing errors."
        ),
        recommendation=(
            "Conduct line-by-line review of duplicated service dates. Deny duplicate claims "
            "and initiate provider education or recovery audit."
        ),
        affected_claim_ids=duplicates,
        estimated_impact=impact,
        stat_detail=f"{count} duplicate claim pairs detected",
    )


def detect_high_frequency_billing(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """Provider claim volume more than two standard deviations above peers."""
    providers = _provider_ids(claims)
    if len(providers) < 3:
        return None

    volume = Counter(c.provider_id for c in claims)
    counts = [volume[pid] for pid in providers]
    m = mean(counts)
    sd = std_dev(counts)

    provider_count = volume.get(provider_id, 0)
    z = z_score(provider_count, m, sd)
    if z <= 2:
        return None

    provider_claims = _provider_claims(provider_id, claims)

    return OutlierFinding(
        rule_id="HIGH_FREQUENCY_BILLING",
        rule_name="High Frequency Billing",
        severity=Severity.CRITICAL if z > 3 else Severity.HIGH,
        description=(
            f"Provider's claim volume is {to_fixed(z, 2)} standard deviations above the peer mean "
            f"({provider_count} claims vs. peer avg {to_fixed(m, 1)}). Unusually high billing "
            "frequency can indicate churning, upcoding, or services rendered without necessity."
        ),
        recommendation=(
            "Initiate focused medical review on a statistically significant sample. Validate "
            "medical necessity for high-frequency procedure codes."
        ),
        affected_claim_ids=[c.id for c in provider_claims],
        estimated_impact=sum(c.amount for c in provider_claims),
        stat_detail=(
            f"z={to_fixed(z, 2)}, volume={provider_count}, peer avg={to_fixed(m, 1)}, "
            f"sd={to_fixed(sd, 1)}"
        ),
    )


def detect_amount_outlier(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """Per-procedure average amount more than 2.5 standard deviations above peers."""
    provider_claims = _provider_claims(provider_id, claims)
    if len(provider_claims) < 3:
        return None

    outlier_ids: list[str] = []
    flagged_codes: list[str] = []
    total_excess = 0.0

    for code in dict.fromkeys(c.procedure_code for c in claims):
        all_for_code = [c for c in claims if c.procedure_code == code]
        if len(all_for_code) < 4:
            continue

        provider_for_code = [c for c in provider_claims if c.procedure_code == code]
        if not provider_for_code:
            continue

        peer_amounts = [c.amount for c in all_for_code if c.provider_id != provider_id]
        if len(peer_amounts) < 3:
            continue

        m = mean(peer_amounts)
        sd = std_dev(peer_amounts)
        provider_avg = mean([c.amount for c in provider_for_code])
        z = z_score(provider_avg, m, sd)

        if z > 2.5:
            for claim in provider_for_code:
                if claim.id not in outlier_ids:
                    outlier_ids.append(claim.id)
            total_excess += (provider_avg - m) * len(provider_for_code)
            flagged_codes.append(
                f"{code} (z={to_fixed(z, 1)}, avg ${to_fixed(provider_avg)} vs peer ${to_fixed(m)})"
            )

    if not outlier_ids:
        return None

    return OutlierFinding(
        rule_id="AMOUNT_STATISTICAL_OUTLIER",
        rule_name="Amount Statistical Outlier",
        severity=Severity.CRITICAL if total_excess > 5000 else Severity.HIGH,
        description=(
            "Provider's billed amounts are statistically elevated for "
            f"{len(flagged_codes)} procedure code(s): {'; '.join(flagged_codes)}. Pattern "
            "suggests potential upcoding or inflated billing."
        ),
        recommendation=(
            "Compare against Medicare fee schedule and peer benchmarks. Request itemized bills "
            "and supporting documentation for outlier claims."
        ),
        affected_claim_ids=outlier_ids,
        estimated_impact=round_half_up(total_excess),
        stat_detail=" | ".join(flagged_codes),
    )


def detect_provider_amount_pattern(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """Provider average claim amount more than two standard deviations above peers.

    Only providers with at least three claims contribute to the peer average.
    """
    providers = _provider_ids(claims)
    if len(providers) < 3:
        return None

    amounts: dict[str, list[float]] = {pid: [] for pid in providers}
    for claim in claims:
        amounts[claim.provider_id].append(claim.amount)

    averages = [mean(values) for values in amounts.values() if len(values) >= 3]
    if len(averages) < 3:
        return None

    m = mean(averages)
    sd = std_dev(averages)

    provider_amounts = amounts.get(provider_id, [])
    if len(provider_amounts) < 3:
        return None

    provider_avg = mean(provider_amounts)
    z = z_score(provider_avg, m, sd)
    if z <= 2:
        return None

    provider_claims = _provider_claims(provider_id, claims)

    return OutlierFinding(
        rule_id="PROVIDER_AMOUNT_PATTERN",
        rule_name="Provider Amount Pattern",
        severity=Severity.CRITICAL if z > 3 else Severity.HIGH,
        description=(
            f"Provider's average claim amount (${to_fixed(provider_avg)}) is {to_fixed(z, 2)} "
            f"standard deviations above the peer average (${to_fixed(m)}). This systematic "
            "elevation may indicate routine upcoding or unnecessary services."
        ),
        recommendation=(
            "Conduct comprehensive billing audit. Compare procedure mix and patient acuity. "
            "Consider pre-payment review or payment suspension pending investigation."
        ),
        affected_claim_ids=[c.id for c in provider_claims],
        estimated_impact=round_half_up((provider_avg - m) * len(provider_amounts)),
        stat_detail=(
            f"z={to_fixed(z, 2)}, provider avg=${to_fixed(provider_avg)}, peer avg=${to_fixed(m)}"
        ),
    )


def detect_beneficiary_churning(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """Provider's beneficiaries who appear across the dataset unusually often."""
    provider_claims = _provider_claims(provider_id, claims)
    if len(provider_claims) < 3:
        return None

    appearances = Counter(c.beneficiary_id for c in claims)
    counts = list(appearances.values())
    m = mean(counts)
    sd = std_dev(counts)

    churning = [
        bid
        for bid in dict.fromkeys(c.beneficiary_id for c in provider_claims)
        if z_score(appearances.get(bid, 0), m, sd) > 2
    ]
    if not churning:
        return None

    affected = [c for c in provider_claims if c.beneficiary_id in churning]
    noun = "beneficiary" if len(churning) == 1 else "beneficiaries"

    return OutlierFinding(
        rule_id="BENEFICIARY_CHURNING",
        rule_name="Beneficiary Churning",
        severity=Severity.HIGH if len(churning) >= 3 else Severity.MEDIUM,
        description=(
            f"{len(churning)} {noun} treated by this provider appear across the dataset at an "
            "unusually high frequency (z > 2). This pattern may indicate beneficiary steering, "
            "unnecessary repeat visits, or collusive overutilization."
        ),
        recommendation=(
            "Conduct beneficiary outreach to verify services were received. Cross-check with "
            "other provider billings for the same beneficiaries."
        ),
        affected_claim_ids=[c.id for c in affected],
        estimated_impact=sum(c.amount for c in affected),
        stat_detail=(
            f"{len(churning)} high-utilization beneficiaries, claim count threshold z>2 "
            f"(peer avg {to_fixed(m, 1)})"
        ),
    )


def detect_round_number_billing(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """More than half of a provider's claims billed in multiples of $50."""
    provider_claims = _provider_claims(provider_id, claims)
    if len(provider_claims) < 5:
        return None

    round_claims = [c for c in provider_claims if is_round_number(c.amount)]
    ratio = len(round_claims) / len(provider_claims)
    if ratio <= 0.5:
        return None

    return OutlierFinding(
        rule_id="ROUND_NUMBER_BILLING",
        rule_name="Round Number Billing",
        severity=Severity.HIGH if ratio > 0.8 else Severity.MEDIUM,
        description=(
            f"{_percent(ratio)}% of provider's claims are billed in round dollar amounts "
            "(multiples of $50 or $100). Legitimate medical billing typically produces irregular "
            "amounts driven by fee schedules. Round-number dominance is a recognized indicator "
            "of fabricated or estimated billing."
        ),
        recommendation=(
            "Request itemized supporting documentation for a random sample. Verify against EHR "
            "and actual service costs. Escalate if documentation cannot be produced."
        ),
        affected_claim_ids=[c.id for c in round_claims],
        estimated_impact=sum(c.amount for c in round_claims),
        stat_detail=(
            f"{len(round_claims)}/{len(provider_claims)} claims ({_percent(ratio)}%) are round numbers"
        ),
    )


def detect_risk_score_concentration(provider_id: str, claims: Sequence[Claim]) -> OutlierFinding | None:
    """More than 60% of a provider's claims carry a risk score of 70 or above."""
    provider_claims = _provider_claims(provider_id, claims)
    if len(provider_claims) < 4:
        return None

    high_risk = [c for c in provider_claims if c.risk_score >= HIGH_RISK_CLAIM_SCORE]
    ratio = len(high_risk) / len(provider_claims)
    if ratio <= 0.6:
        return None

    share = f"{len(high_risk)}/{len(provider_claims)}"

    return OutlierFinding(
        rule_id="RISK_SCORE_CONCENTRATION",
        rule_name="Risk Score Concentration",
        severity=Severity.CRITICAL if ratio > 0.8 else Severity.HIGH,
        description=(
            f"{_percent(ratio)}% of provider's claims ({share}) carry a risk score ≥ 70. Normal "
            "providers have distributed risk profiles. Concentrated high-risk claims indicate "
            "systematic fraud patterns flagged by the AI risk engine."
        ),
        recommendation=(
            "Suspend provider for pre-payment review. Initiate full billing audit and consider "
            "referral to program integrity team. Cross-reference with LEIE/SAM exclusion lists."
        ),
        affected_claim_ids=[c.id for c in high_risk],
        estimated_impact=sum(c.amount for c in high_risk),
        stat_detail=f"{share} claims with riskScore ≥ 70 ({_percent(ratio)}%)",
    )


OUTLIER_RULES: tuple[Rule, ...] = (
    Rule("DUPLICATE_BILLING", "Duplicate Billing", "PATTERN", detect_duplicate_billing),
    Rule("HIGH_FREQUENCY_BILLING", "High Frequency Billing", "STATISTICAL", detect_high_frequency_billing),
    Rule("AMOUNT_STATISTICAL_OUTLIER", "Amount Statistical Outlier", "STATISTICAL", detect_amount_outlier),
    Rule("PROVIDER_AMOUNT_PATTERN", "Provider Amount Pattern", "STATISTICAL", detect_provider_amount_pattern),
    Rule("BENEFICIARY_CHURNING", "Beneficiary Churning", "STATISTICAL", detect_beneficiary_churning),
    Rule("ROUND_NUMBER_BILLING", "Round Number Billing", "PATTERN", detect_round_number_billing),
    Rule("RISK_SCORE_CONCENTRATION", "Risk Score Concentration", "PATTERN", detect_risk_score_concentration),
)
