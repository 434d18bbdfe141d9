"""Rule-based readmission backend."""

from __future__ import annotations

from payment_review.rules.registry import RuleRegistry
from payment_review.rules.ruleset import readmission_registry
from payment_review.rules.scoring import SCORE_MAX, confidence_score
from payment_review.schemas.common import DischargeStatus, Severity, count_severity, has_category
from payment_review.schemas.readmission import (
    ClinicalRelatedness,
    ReadmissionFinding,
    ReadmissionFindingCategory,
    ReadmissionPair,
    ReadmissionReviewStatus,
)
from payment_review.utils import format_amount, pluralize, round_half_up

from .base import ReadmissionBackendResult, ReadmissionContext, RuleBasedBackend

Category = ReadmissionFindingCategory

# Findings that keep a planned readmission under review
COMPLICATION_RULE_IDS = frozenset({"RULE-RA-CR-002", "RULE-RA-QC-002"})


def has_complication_findings(findings: list[ReadmissionFinding]) -> bool:
    return any(f.rule_id in COMPLICATION_RULE_IDS for f in findings)


def _planned_without_complication(pair: ReadmissionPair, findings: list[ReadmissionFinding]) -> bool:
    return pair.is_planned_readmission and not has_complication_findings(findings)


def assess_relatedness(pair: ReadmissionPair, findings: list[ReadmissionFinding]) -> ClinicalRelatedness:
    if _planned_without_complication(pair, findings):
        return ClinicalRelatedness.NOT_RELATED

    related = [f for f in findings if f.category == Category.CLINICAL_RELATEDNESS]
    same_category = pair.same_diagnosis_category
    days = pair.days_between

    if count_severity(related, Severity.CRITICAL) or (same_category and days <= 3):
        return ClinicalRelatedness.DEFINITELY_RELATED
    if count_severity(related, Severity.HIGH) or (same_category and days <= 14):
        return ClinicalRelatedness.LIKELY_RELATED
    if related or days <= 7:
        return ClinicalRelatedness.POSSIBLY_RELATED
    return ClinicalRelatedness.NOT_RELATED


def determine_status(
    pair: ReadmissionPair,
    findings: list[ReadmissionFinding],
    relatedness: ClinicalRelatedness,
) -> ReadmissionReviewStatus:
    """Review status, checked in precedence order.

    DRG bundling findings outrank timing findings, which outrank discharge
    and quality findings.
    """
    if _planned_without_complication(pair, findings):
        return ReadmissionReviewStatus.PLANNED

    critical_timing = any(
        f.category == Category.TIMING_PATTERN and f.severity == Severity.CRITICAL for f in findings
    )
    if has_category(findings, Category.DRG_BUNDLING) or critical_timing:
        return ReadmissionReviewStatus.BUNDLE_CANDIDATE

    if has_category(findings, Category.DISCHARGE_ADEQUACY) or has_category(findings, Category.QUALITY_CONCERN):
        return ReadmissionReviewStatus.POTENTIALLY_PREVENTABLE

    if relatedness in (ClinicalRelatedness.DEFINITELY_RELATED, ClinicalRelatedness.LIKELY_RELATED):
        return ReadmissionReviewStatus.CLINICALLY_RELATED

    if not findings or relatedness == ClinicalRelatedness.NOT_RELATED:
        return ReadmissionReviewStatus.NOT_RELATED

    return ReadmissionReviewStatus.CLINICALLY_RELATED


def calculate_preventability(pair: ReadmissionPair, findings: list[ReadmissionFinding]) -> int:
    if pair.is_planned_readmission:
        return 0

    score = 10
    if pair.days_between <= 3:
        score += 25
    elif pair.days_between <= 7:
        score += 15
    elif pair.days_between <= 14:
        score += 10

    if pair.same_diagnosis_category:
        score += 20
    score += 15 * sum(1 for f in findings if f.category == Category.DISCHARGE_ADEQUACY)
    score += 10 * sum(1 for f in findings if f.category == Category.QUALITY_CONCERN)
    if pair.index_discharge_status == DischargeStatus.AMA:
        score += 15

    return min(SCORE_MAX, score)


def calculate_bundle_savings(pair: ReadmissionPair, status: ReadmissionReviewStatus) -> float:
    if status == ReadmissionReviewStatus.BUNDLE_CANDIDATE:
        return pair.readmit_billed_amount
    if status == ReadmissionReviewStatus.POTENTIALLY_PREVENTABLE:
        return round_half_up(pair.readmit_billed_amount * 0.5)
    return 0


def calculate_hrrp_risk(pair: ReadmissionPair, findings: list[ReadmissionFinding]) -> int:
    """Hospital Readmissions Reduction Program penalty exposure."""
    if pair.hrrp_target_condition is None:
        return 0
    if pair.is_planned_readmission:
        return 5
    if pair.days_between > 30:
        return 0

    risk = 30
    if pair.same_diagnosis_category:
        risk += 25
    if pair.days_between <= 7:
        risk += 20
    elif pair.days_between <= 14:
        risk += 10
    risk += 10 * count_severity(findings, Severity.CRITICAL)

    return min(SCORE_MAX, risk)


class RuleBasedReadmissionBackend(RuleBasedBackend[ReadmissionContext, ReadmissionBackendResult]):
    """Classifies a readmission pair with the readmission rules."""

    def __init__(self, registry: RuleRegistry | None = None, strict: bool | None = None) -> None:
        super().__init__(readmission_registry() if registry is None else registry, strict)

    def evaluate(self, prompt: str, context: ReadmissionContext) -> ReadmissionBackendResult:
        pair = context.pair
        run = self.run_rules(pair)
        findings = run.findings

        relatedness = assess_relatedness(pair, findings)
        status = determine_status(pair, findings, relatedness)
        preventability = calculate_preventability(pair, findings)
        bundle_savings = calculate_bundle_savings(pair, status)

        return ReadmissionBackendResult(
            review_status=status,
            clinical_relatedness=relatedness,
            preventability_score=preventability,
            confidence=confidence_score(len(findings), clean=90, start=88, step=6, floor=55),
            bundle_savings=bundle_savings,
            hrrp_penalty_risk=calculate_hrrp_risk(pair, findings),
            findings=findings,
            summary=self._build_summary(pair, findings, status, relatedness, preventability, bundle_savings),
            warnings=run.warnings,
        )

    def _build_summary(
        self,
        pair: ReadmissionPair,
        findings: list[ReadmissionFinding],
        status: ReadmissionReviewStatus,
        relatedness: ClinicalRelatedness,
        preventability: int,
        bundle_savings: float,
    ) -> str:
        readmit_dx = pair.readmit_primary_diagnosis.description
        hrrp = pair.hrrp_target_condition.value if pair.hrrp_target_condition else None

        if status == ReadmissionReviewStatus.PLANNED:
            return (
                f"Planned readmission for {readmit_dx}. Documented in index discharge plan. No "
                "adverse findings - separate payment appropriate."
            )

        if status == ReadmissionReviewStatus.NOT_RELATED and not findings:
            return (
                f"Readmission for {readmit_dx} appears clinically unrelated to the index admission "
                f"for {pair.index_primary_diagnosis.description}. Different diagnosis, appropriate "
                "timing. Separate payment appropriate."
            )

        counted = f"{pluralize(len(findings), 'finding')} identified"

        if status == ReadmissionReviewStatus.BUNDLE_CANDIDATE:
            critical = count_severity(findings, Severity.CRITICAL)
            return (
                f"{counted}{f' ({critical} critical)' if critical else ''}. Readmission "
                f"{pair.days_between} days after discharge is a strong bundle candidate. Estimated "
                f"savings if bundled: ${format_amount(bundle_savings)}. Clinical relatedness: "
                f"{relatedness.value}."
            )

        if status == ReadmissionReviewStatus.POTENTIALLY_PREVENTABLE:
            hrrp_sentence = f"HRRP target condition: {hrrp}. " if hrrp else ""
            return (
                f"{counted}. Readmission was potentially preventable (preventability score: "
                f"{preventability}%). {hrrp_sentence}Clinical relatedness: {relatedness.value}."
            )

        return (
            f"{counted}. Clinical relatedness: {relatedness.value}. Preventability: "
            f"{preventability}%.{f' HRRP target: {hrrp}.' if hrrp else ''}"
        )
