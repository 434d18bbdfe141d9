"""Readmission rules.

Each rule compares an index admission with the readmission that followed
it. Financial impact is the negative share of the billed amount that would
not be paid separately if the two stays were bundled.
"""

from __future__ import annotations

from payment_review.rules.matching import NoteMatcher
from payment_review.rules.models import Rule
from payment_review.schemas.common import AdmissionType, DischargeStatus, Severity
from payment_review.schemas.readmission import (
    ReadmissionFinding,
    ReadmissionFindingCategory,
    ReadmissionPair,
)
from payment_review.utils import format_amount

Category = ReadmissionFindingCategory

COMPLICATION_TERMS = (
    "complication",
    "post-surgical",
    "postoperative",
    "surgical site infection",
    "post-procedural",
    "adverse drug event",
    "digoxin toxicity",
    "medication-related",
)
PROGRESSION_TERMS = (
    "progressed",
    "progression",
    "worsening",
    "escalation",
    "same organism",
    "same condition",
    "incompletely treated",
    "incomplete treatment",
)
PREMATURE_DISCHARGE_TERMS = (
    "premature discharge",
    "inadequate",
    "identical",
    "same presentation",
    "single episode",
)
FOLLOW_UP_GAP_TERMS = (
    "no follow-up",
    "did not follow up",
    "no pulmonology follow-up",
    "no cardiology follow-up",
    "ran out of",
    "stopped taking",
    "did not complete",
    "medication noncompliance",
    "noncompliance",
)
REVOLVING_DOOR_TERMS = (
    "revolving door",
    "third",
    "fourth",
    "multiple admissions",
    "recurrent admissions",
    "frequent flyer",
)
NO_OPTIMIZATION_TERMS = (
    "no evidence of medication optimization",
    "no disease management",
    "no palliative care",
    "without medication optimization",
    "no social work",
)
SURGICAL_TERMS = ("surgery", "arthroplasty", "appendectomy", "procedure")
SURGICAL_COMPLICATION_TERMS = ("surgical site infection", "post-surgical complication", "postoperative")


def same_principal_dx_category(pair: ReadmissionPair) -> bool:
    return pair.same_diagnosis_category


def shared_diagnosis_codes(pair: ReadmissionPair) -> list[str]:
    """Readmission diagnosis codes that also appear on the index admission, in readmission order."""
    index_codes = {pair.index_primary_diagnosis.code}
    index_codes.update(d.code for d in pair.index_secondary_diagnoses)
    readmit_codes = [pair.readmit_primary_diagnosis.code] + [d.code for d in pair.readmit_secondary_diagnoses]
    return [code for code in readmit_codes if code in index_codes]


def _readmit_has_code(pair: ReadmissionPair, *prefixes: str) -> bool:
    return any(d.code.startswith(prefixes) for d in pair.readmit_secondary_diagnoses)


# Clinical relatedness


def same_principal_diagnosis_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    if not same_principal_dx_category(pair) or pair.is_planned_readmission:
        return None

    index_dx = pair.index_primary_diagnosis
    readmit_dx = pair.readmit_primary_diagnosis
    return ReadmissionFinding(
        rule_id="RULE-RA-CR-001",
        category=Category.CLINICAL_RELATEDNESS,
        severity=Severity.HIGH,
        description=(
            "Readmission has the same principal diagnosis category as the index admission "
            f"({index_dx.code} -> {readmit_dx.code}: {readmit_dx.description}). This strongly "
            "suggests the readmission is clinically related to the index stay and may represent "
            "incomplete treatment or disease recurrence."
        ),
        recommendation=(
            "Review index discharge to assess whether treatment was adequate. Evaluate if the "
            "readmission could have been prevented with more aggressive treatment, closer "
            "follow-up, or extended index stay."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


def complication_of_index_treatment_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Complication language in the readmission notes or a T8x complication code."""
    notes = NoteMatcher(pair.readmit_clinical_notes)
    if not (notes.any(COMPLICATION_TERMS) or _readmit_has_code(pair, "T8")):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-CR-002",
        category=Category.CLINICAL_RELATEDNESS,
        severity=Severity.CRITICAL,
        description=(
            "Readmission appears to be a direct complication of treatment provided during the "
            "index admission. Complication/adverse event codes and/or clinical documentation "
            "support a treatment-related readmission. This is clinically related and potentially "
            "preventable."
        ),
        recommendation=(
            "Refer to quality committee for root cause analysis. Evaluate index treatment "
            "protocols, surgical technique, medication management, and post-discharge monitoring. "
            "Consider whether the readmission should be bundled with the index stay for payment "
            "purposes."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


def disease_progression_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    notes = NoteMatcher(pair.readmit_clinical_notes)
    shared = shared_diagnosis_codes(pair)
    if not notes.any(PROGRESSION_TERMS) or not shared:
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-CR-003",
        category=Category.CLINICAL_RELATEDNESS,
        severity=Severity.HIGH,
        description=(
            "Readmission represents progression or recurrence of the index condition. Shared "
            f"diagnosis codes: {', '.join(shared)}. Clinical notes indicate the index condition "
            "was not fully resolved at discharge."
        ),
        recommendation=(
            "Review whether the index treatment course was adequate. Evaluate if the index length "
            "of stay was sufficient for clinical stabilization. Document root cause for quality "
            "reporting."
        ),
        financial_impact=-(pair.readmit_billed_amount * 0.7),
    )


# Discharge adequacy


def premature_discharge_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Index stay of two days or less followed by a readmission within three days."""
    if pair.is_planned_readmission:
        return None

    notes = NoteMatcher(pair.readmit_clinical_notes)
    short_stay = pair.index_length_of_stay <= 2
    rapid_readmit = pair.days_between <= 3
    if not (short_stay and rapid_readmit):
        return None
    if not (same_principal_dx_category(pair) or notes.any(PREMATURE_DISCHARGE_TERMS)):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-DA-001",
        category=Category.DISCHARGE_ADEQUACY,
        severity=Severity.CRITICAL,
        description=(
            f"Index stay of only {pair.index_length_of_stay} days followed by readmission in "
            f"{pair.days_between} days with the same or worsened condition. Pattern strongly "
            "suggests premature discharge from the index admission. These two stays may represent "
            "a single episode of care."
        ),
        recommendation=(
            "Consider bundling these two admissions as a single episode. Review index discharge "
            "decision-making. If bundled, only the higher-weighted DRG should be reimbursed. Flag "
            "for case management review."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


def ama_discharge_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    if pair.index_discharge_status != DischargeStatus.AMA:
        return None
    if not (same_principal_dx_category(pair) and pair.days_between <= 7):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-DA-002",
        category=Category.DISCHARGE_ADEQUACY,
        severity=Severity.HIGH,
        description=(
            "Patient left the index admission Against Medical Advice (AMA) and was readmitted "
            f"{pair.days_between} days later with the same condition. The readmission represents "
            "continuation of the interrupted treatment course. CMS may consider this a single "
            "episode of care."
        ),
        recommendation=(
            "Review AMA discharge documentation. Evaluate whether bundling is appropriate. Note "
            "that AMA discharges followed by rapid readmission are a known HRRP concern. Consider "
            "enhanced discharge planning protocols for high-risk AMA patients."
        ),
        financial_impact=-(pair.readmit_billed_amount * 0.8),
    )


def inadequate_follow_up_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    if pair.is_planned_readmission:
        return None

    notes = NoteMatcher(pair.readmit_clinical_notes)
    if not (notes.any(FOLLOW_UP_GAP_TERMS) and pair.days_between <= 30):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-DA-003",
        category=Category.DISCHARGE_ADEQUACY,
        severity=Severity.MEDIUM,
        description=(
            "Readmission notes indicate gaps in post-discharge follow-up: missed appointments, "
            "medication noncompliance, or incomplete treatment courses. These gaps contributed to "
            "the readmission and suggest the discharge plan was inadequate or patient adherence "
            "support was insufficient."
        ),
        recommendation=(
            "Review discharge planning process. Consider enhanced transitional care: 48-hour "
            "post-discharge phone calls, medication delivery programs, and home health assessment. "
            "Refer to case management for high-risk patient identification."
        ),
        financial_impact=-(pair.readmit_billed_amount * 0.3),
    )


# Timing patterns


def same_day_transfer_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Same-day readmission at another facility after a transfer discharge."""
    if pair.days_between > 0 or pair.same_facility:
        return None
    if pair.index_discharge_status != DischargeStatus.TRANSFERRED:
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-TP-001",
        category=Category.TIMING_PATTERN,
        severity=Severity.CRITICAL,
        description=(
            "Same-day transfer between facilities. The index admission shows transfer discharge "
            "status and the readmission occurs on the same date at a different facility. Per CMS "
            "transfer rules, the transferring hospital receives a per diem payment and the "
            "receiving hospital bills the full DRG. Both facilities should not be billing full "
            "DRG rates."
        ),
        recommendation=(
            "Apply CMS transfer DRG pricing rules. The transferring facility should receive a per "
            "diem rate (not the full DRG). Verify transfer agreement documentation. Flag for "
            "payment adjustment."
        ),
        financial_impact=-(pair.index_billed_amount * 0.6),
    )


def rapid_readmission_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Unplanned readmission one to three days after discharge."""
    if pair.days_between > 3 or pair.days_between == 0 or pair.is_planned_readmission:
        return None

    days = pair.days_between
    return ReadmissionFinding(
        rule_id="RULE-RA-TP-002",
        category=Category.TIMING_PATTERN,
        severity=Severity.HIGH,
        description=(
            f"Readmission occurred within {days} day{'' if days == 1 else 's'} of discharge. Very "
            "rapid readmissions (<=3 days) have the highest correlation with premature discharge "
            "or continuation of the same episode of care. This timing pattern warrants close "
            "scrutiny for potential bundling."
        ),
        recommendation=(
            "Conduct detailed clinical review to determine if this is a single episode of care. "
            "If so, bundle the two admissions. Consider denying the readmission if it represents "
            "the same treatment episode."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


# DRG bundling


def identical_drg_bundling_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    if pair.is_planned_readmission or pair.index_drg != pair.readmit_drg or pair.days_between > 14:
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-DB-001",
        category=Category.DRG_BUNDLING,
        severity=Severity.CRITICAL,
        description=(
            f"Both admissions have identical DRG assignments ({pair.index_drg}: "
            f"{pair.index_drg_description}) within {pair.days_between} days. This pattern is "
            "consistent with DRG unbundling: splitting a single episode into two admissions to "
            "bill two DRG payments. Combined billing: "
            f"${format_amount(pair.combined_billed_amount)}."
        ),
        recommendation=(
            "Strongly consider bundling these admissions as a single episode of care. If bundled, "
            "reimburse only one DRG payment. Refer to Special Investigations Unit (SIU) if pattern "
            "is repeated across multiple patients at this facility."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


# Quality concerns


def revolving_door_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    notes = NoteMatcher(pair.readmit_clinical_notes)
    revolving_door = notes.any(REVOLVING_DOOR_TERMS)
    unoptimized_recurrence = same_principal_dx_category(pair) and notes.any(NO_OPTIMIZATION_TERMS)
    if not (revolving_door or unoptimized_recurrence):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-QC-001",
        category=Category.QUALITY_CONCERN,
        severity=Severity.CRITICAL,
        description=(
            "Documentation indicates a pattern of recurrent admissions for the same condition "
            "without evidence of care escalation, medication optimization, disease management "
            "enrollment, or palliative care discussion. This revolving door pattern represents a "
            "systemic quality concern."
        ),
        recommendation=(
            "Mandatory case management review. Require documented evidence of medication "
            "optimization, specialist referral, disease management enrollment, and goals of care "
            "discussion before approving further admissions. Consider palliative care or hospice "
            "referral if appropriate."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


def surgical_complication_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Surgical complication within 30 days of an elective surgical index stay."""
    index_notes = NoteMatcher(pair.index_clinical_notes)
    readmit_notes = NoteMatcher(pair.readmit_clinical_notes)

    index_surgical = pair.index_admission_type == AdmissionType.ELECTIVE and index_notes.any(SURGICAL_TERMS)
    readmit_complication = _readmit_has_code(pair, "T81", "T84") or readmit_notes.any(SURGICAL_COMPLICATION_TERMS)
    if not (index_surgical and readmit_complication and pair.days_between <= 30):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-QC-002",
        category=Category.QUALITY_CONCERN,
        severity=Severity.HIGH,
        description=(
            "Readmission for a surgical complication within 30 days of an elective surgical "
            "procedure. This is a patient safety indicator (PSI) event that should be reported. "
            "Consider whether the complication was preventable."
        ),
        recommendation=(
            "Report as Patient Safety Indicator event. Conduct surgical M&M (morbidity and "
            "mortality) review. Evaluate perioperative protocols (antibiotic prophylaxis, surgical "
            "technique, sterile technique). Flag for CMS quality reporting."
        ),
        financial_impact=-pair.readmit_billed_amount,
    )


# Documentation gaps


def missing_discharge_plan_rule(pair: ReadmissionPair) -> ReadmissionFinding | None:
    """Index discharge plan absent, under 80 characters, or without follow-up arrangements."""
    if pair.is_planned_readmission:
        return None

    plan = NoteMatcher(pair.index_discharge_plan)
    inadequate = len(plan) < 80 or not plan.any(("follow-up", "follow up"))
    if not (inadequate and pair.days_between <= 30):
        return None

    return ReadmissionFinding(
        rule_id="RULE-RA-DOC-001",
        category=Category.DOCUMENTATION_GAP,
        severity=Severity.MEDIUM,
        description=(
            "Index admission has a missing or inadequate discharge plan. Comprehensive discharge "
            "planning is a key element of readmission prevention. Without documented follow-up "
            "arrangements, medication reconciliation, and patient education, readmission risk is "
            "significantly elevated."
        ),
        recommendation=(
            "Require comprehensive discharge summary with: follow-up appointments, medication list "
            "with changes highlighted, warning signs education, and contact information for "
            "questions. Implement discharge planning checklist."
        ),
        financial_impact=-(pair.readmit_billed_amount * 0.2),
    )


READMISSION_RULES: tuple[Rule, ...] = (
    # Clinical relatedness
    Rule("RULE-RA-CR-001", "Same Principal Diagnosis", "CLINICAL_RELATEDNESS", same_principal_diagnosis_rule),
    Rule(
        "RULE-RA-CR-002",
        "Complication of Index Treatment",
        "CLINICAL_RELATEDNESS",
        complication_of_index_treatment_rule,
    ),
    Rule(
        "RULE-RA-CR-003",
        "Disease Progression from Index Condition",
        "CLINICAL_RELATEDNESS",
        disease_progression_rule,
    ),
    # Discharge adequacy
    Rule("RULE-RA-DA-001", "Premature Discharge Pattern", "DISCHARGE_ADEQUACY", premature_discharge_rule),
    Rule("RULE-RA-DA-002", "AMA Discharge Leading to Readmission", "DISCHARGE_ADEQUACY", ama_discharge_rule),
    Rule("RULE-RA-DA-003", "Inadequate Follow-Up Planning", "DISCHARGE_ADEQUACY", inadequate_follow_up_rule),
    # Timing patterns
    Rule("RULE-RA-TP-001", "Same-Day Transfer: Bundle Candidate", "TIMING_PATTERN", same_day_transfer_rule),
    Rule("RULE-RA-TP-002", "Rapid Readmission (<=3 Days)", "TIMING_PATTERN", rapid_readmission_rule),
    # DRG bundling
    Rule("RULE-RA-DB-001", "Identical DRG: Potential Unbundling", "DRG_BUNDLING", identical_drg_bundling_rule),
    # Quality concerns
    Rule("RULE-RA-QC-001", "Revolving Door Admission Pattern", "QUALITY_CONCERN", revolving_door_rule),
    Rule("RULE-RA-QC-002", "Surgical Complication Readmission", "QUALITY_CONCERN", surgical_complication_rule),
    # Documentation gaps
    Rule(
        "RULE-RA-DOC-001",
        "Missing or Inadequate Discharge Plan",
        "DOCUMENTATION_GAP",
        missing_discharge_plan_rule,
    ),
)
