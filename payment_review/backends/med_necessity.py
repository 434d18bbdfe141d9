"""Rule-based medical necessity backend.

Criteria are assessed first, then status, level of care and denial risk
are derived from the criteria and the finding set.
"""

from __future__ import annotations

from payment_review.rules.categories.necessity_rules import instability_signals
from payment_review.rules.matching import NoteMatcher
from payment_review.rules.registry import RuleRegistry
from payment_review.rules.ruleset import necessity_registry
from payment_review.rules.scoring import SCORE_MAX, confidence_score
from payment_review.schemas.common import AdmissionType, DischargeStatus, Severity, count_severity
from payment_review.schemas.med_necessity import (
    ContinuedStayResult,
    CriterionResult,
    MedNecessityClaim,
    MedNecessityCriteria,
    MedNecessityFinding,
    MedNecessityFindingCategory,
    MedNecessityStatus,
    RecommendedLevelOfCare,
)
from payment_review.utils import format_amount, parse_blood_pressure, pluralize, round_half_up

from .base import MedNecessityBackendResult, MedNecessityContext, RuleBasedBackend

Category = MedNecessityFindingCategory


def _in_category(findings: list[MedNecessityFinding], category: Category) -> list[MedNecessityFinding]:
    return [f for f in findings if f.category == category]


def assess_criteria(claim: MedNecessityClaim, findings: list[MedNecessityFinding]) -> MedNecessityCriteria:
    """Assess severity of illness, intensity of service, admission criteria and continued stay."""
    blood_pressure = parse_blood_pressure(claim.admission_vitals.blood_pressure)
    vital_instability = bool(instability_signals(claim, blood_pressure))
    abnormal_labs = claim.abnormal_lab_count

    if vital_instability and abnormal_labs >= 2:
        severity = CriterionResult.MET
    elif _in_category(findings, Category.SEVERITY_OF_ILLNESS):
        severity = CriterionResult.NOT_MET
    elif vital_instability or abnormal_labs >= 2:
        severity = CriterionResult.PARTIALLY_MET
    else:
        severity = CriterionResult.NOT_MET

    high_intensity = claim.icu_admission or claim.surgical_procedure or (
        claim.iv_medications_required and claim.telemetry_required
    )
    moderate_intensity = (
        claim.iv_medications_required
        or claim.oxygen_required
        or claim.telemetry_required
        or claim.isolation_required
    )
    if high_intensity:
        intensity = CriterionResult.MET
    elif _in_category(findings, Category.INTENSITY_OF_SERVICE):
        intensity = CriterionResult.NOT_MET
    elif moderate_intensity:
        intensity = CriterionResult.PARTIALLY_MET
    else:
        intensity = CriterionResult.NOT_MET

    if _in_category(findings, Category.ADMISSION_CRITERIA):
        admission = CriterionResult.NOT_MET
    elif severity == CriterionResult.MET and intensity == CriterionResult.MET:
        admission = CriterionResult.MET
    elif severity == CriterionResult.NOT_MET and intensity == CriterionResult.NOT_MET:
        admission = CriterionResult.NOT_MET
    else:
        admission = CriterionResult.PARTIALLY_MET

    if _in_category(findings, Category.CONTINUED_STAY):
        continued_stay = ContinuedStayResult.NOT_JUSTIFIED
    elif claim.length_of_stay <= 3 or claim.icu_admission or claim.surgical_procedure:
        continued_stay = ContinuedStayResult.JUSTIFIED
    else:
        continued_stay = ContinuedStayResult.INDETERMINATE

    return MedNecessityCriteria(
        severity_of_illness=severity,
        intensity_of_service=intensity,
        admission_criteria=admission,
        continued_stay=continued_stay,
    )


def determine_status(
    criteria: MedNecessityCriteria, findings: list[MedNecessityFinding]
) -> MedNecessityStatus:
    """Status from the criteria assessment, checked in precedence order.

    "Does Not Meet" requires at least one Critical finding; unmet criteria
    backed only by High findings fall through to Observation or Queried.
    """
    has_critical = count_severity(findings, Severity.CRITICAL) > 0

    if (
        criteria.severity_of_illness == CriterionResult.MET
        and criteria.intensity_of_service == CriterionResult.MET
        and criteria.admission_criteria == CriterionResult.MET
    ):
        return MedNecessityStatus.MEETS_CRITERIA
    if (
        criteria.severity_of_illness == CriterionResult.NOT_MET
        and criteria.intensity_of_service == CriterionResult.NOT_MET
        and has_critical
    ):
        return MedNecessityStatus.DOES_NOT_MEET
    if criteria.admission_criteria == CriterionResult.NOT_MET and has_critical:
        return MedNecessityStatus.DOES_NOT_MEET
    if _in_category(findings, Category.LEVEL_OF_CARE):
        return MedNecessityStatus.OBSERVATION
    if findings:
        return MedNecessityStatus.QUERIED
    return MedNecessityStatus.MEETS_CRITERIA


def recommend_level_of_care(
    claim: MedNecessityClaim,
    criteria: MedNecessityCriteria,
    findings: list[MedNecessityFinding],
) -> RecommendedLevelOfCare:
    notes = NoteMatcher(claim.clinical_notes)

    if criteria.severity_of_illness == CriterionResult.MET and criteria.intensity_of_service == CriterionResult.MET:
        return RecommendedLevelOfCare.INPATIENT

    if (
        criteria.severity_of_illness == CriterionResult.NOT_MET
        and criteria.intensity_of_service == CriterionResult.NOT_MET
    ):
        if notes.all(("ambulatory", "tolerating")) and not claim.icu_admission:
            return RecommendedLevelOfCare.OUTPATIENT
        return RecommendedLevelOfCare.OBSERVATION

    if claim.discharge_status == DischargeStatus.SNF or notes.has("skilled nursing"):
        return RecommendedLevelOfCare.SKILLED_NURSING
    if _in_category(findings, Category.LEVEL_OF_CARE):
        return RecommendedLevelOfCare.OBSERVATION
    return RecommendedLevelOfCare.INPATIENT


def calculate_denial_risk(
    claim: MedNecessityClaim,
    criteria: MedNecessityCriteria,
    findings: list[MedNecessityFinding],
) -> int:
    risk = 10

    for criterion in (criteria.severity_of_illness, criteria.intensity_of_service):
        if criterion == CriterionResult.NOT_MET:
            risk += 25
        elif criterion == CriterionResult.PARTIALLY_MET:
            risk += 10

    if criteria.admission_criteria == CriterionResult.NOT_MET:
        risk += 20

    risk += 15 * count_severity(findings, Severity.CRITICAL)
    risk += 10 * len(_in_category(findings, Category.DOCUMENTATION_GAP))

    if claim.admission_type == AdmissionType.ELECTIVE and claim.length_of_stay <= 2:
        risk += 15

    return min(SCORE_MAX, risk)


class RuleBasedMedNecessityBackend(RuleBasedBackend[MedNecessityContext, MedNecessityBackendResult]):
    """Judges an inpatient admission with the medical necessity rules."""

    def __init__(self, registry: RuleRegistry | None = None, strict: bool | None = None) -> None:
        super().__init__(necessity_registry() if registry is None else registry, strict)

    def evaluate(self, prompt: str, context: MedNecessityContext) -> MedNecessityBackendResult:
        claim = context.claim
        run = self.run_rules(claim)
        findings = run.findings

        criteria = assess_criteria(claim, findings)
        status = determine_status(criteria, findings)
        level_of_care = recommend_level_of_care(claim, criteria, findings)
        denial_risk = calculate_denial_risk(claim, criteria, findings)

        if status == MedNecessityStatus.DOES_NOT_MEET:
            estimated_denial = claim.billed_amount
        elif status == MedNecessityStatus.OBSERVATION:
            estimated_denial = round_half_up(claim.billed_amount * 0.5)
        else:
            estimated_denial = 0

        return MedNecessityBackendResult(
            med_necessity_status=status,
            recommended_level_of_care=level_of_care,
            criteria_assessment=criteria,
            confidence=confidence_score(len(findings), clean=92, start=88, step=8, floor=55),
            denial_risk=denial_risk,
            estimated_denial_amount=estimated_denial,
            findings=findings,
            summary=self._build_summary(claim, findings, status, level_of_care, denial_risk),
            warnings=run.warnings,
        )

    def _build_summary(
        self,
        claim: MedNecessityClaim,
        findings: list[MedNecessityFinding],
        status: MedNecessityStatus,
        level_of_care: RecommendedLevelOfCare,
        denial_risk: int,
    ) -> str:
        if not findings:
            return (
                "Medical necessity criteria for inpatient admission are met. Patient "
                f"{claim.beneficiary_name} presented with clinical severity and service intensity "
                "supporting inpatient-level care. No adverse findings identified."
            )

        count = len(findings)
        if status == MedNecessityStatus.DOES_NOT_MEET:
            critical = count_severity(findings, Severity.CRITICAL)
            total_impact = sum(abs(f.financial_impact or 0) for f in findings)
            return (
                "Medical necessity criteria for inpatient admission are NOT met. "
                f"{pluralize(count, 'finding')} identified{f' ({critical} critical)' if critical else ''}. "
                f"Recommended level of care: {level_of_care.value}. Estimated denial exposure: "
                f"${format_amount(total_impact)}. Denial risk: {denial_risk}%."
            )

        if status == MedNecessityStatus.OBSERVATION:
            return (
                "Admission may be more appropriate at observation level of care. "
                f"{pluralize(count, 'finding')} suggest the patient's condition could be managed "
                f"without full inpatient admission. Denial risk: {denial_risk}%."
            )

        return (
            f"{pluralize(count, 'review finding')} identified requiring clinical clarification. "
            f"Denial risk: {denial_risk}%. Physician advisor review recommended for medical "
            "necessity determination."
        )
