"""Medical necessity rules.

Rules judge whether an inpatient admission is justified from admission
vitals, lab flags, resource-utilization indicators and the clinical notes.
Financial impact is the negative share of the billed amount at risk of
denial.
"""

from __future__ import annotations

from payment_review.errors import RuleInputError
from payment_review.rules.matching import NoteMatcher
from payment_review.rules.models import Rule
from payment_review.schemas.common import AdmissionType, Severity
from payment_review.schemas.med_necessity import (
    MedNecessityClaim,
    MedNecessityFinding,
    MedNecessityFindingCategory,
)
from payment_review.utils import parse_blood_pressure

Category = MedNecessityFindingCategory


def require_blood_pressure(claim: MedNecessityClaim) -> tuple[int, int]:
    """Parsed ``(systolic, diastolic)`` or ``RuleInputError``."""
    reading = parse_blood_pressure(claim.admission_vitals.blood_pressure)
    if reading is None:
        raise RuleInputError(
            f"Unparseable blood pressure {claim.admission_vitals.blood_pressure!r}",
            field="admissionVitals.bloodPressure",
        )
    return reading


def instability_signals(claim: MedNecessityClaim, blood_pressure: tuple[int, int] | None) -> list[str]:
    """Names of the admission vitals outside the unstable thresholds."""
    vitals = claim.admission_vitals
    signals = []
    if blood_pressure is not None and (blood_pressure[0] < 90 or blood_pressure[1] < 60):
        signals.append("hypotension")
    if vitals.heart_rate > 110:
        signals.append("tachycardia")
    if vitals.temperature > 101.0:
        signals.append("fever")
    if vitals.respiratory_rate > 22:
        signals.append("tachypnea")
    if vitals.o2_saturation < 92:
        signals.append("hypoxia")
    return signals


# Severity of illness


def stable_vitals_low_acuity_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Every admission vital in the stable band with at most one abnormal lab."""
    systolic, diastolic = require_blood_pressure(claim)
    vitals = claim.admission_vitals

    vitals_stable = (
        100 <= systolic <= 160
        and 60 <= diastolic <= 95
        and 60 <= vitals.heart_rate <= 100
        and 97.5 <= vitals.temperature <= 99.5
        and 12 <= vitals.respiratory_rate <= 20
        and vitals.o2_saturation >= 95
    )
    if not vitals_stable or claim.abnormal_lab_count > 1 or claim.icu_admission:
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-SI-001",
        category=Category.SEVERITY_OF_ILLNESS,
        severity=Severity.HIGH,
        description=(
            "Admission vitals are within normal limits and lab values show minimal derangement. "
            "Severity of illness criteria for inpatient admission may not be met. Patient appears "
            "hemodynamically stable without evidence of acute organ dysfunction."
        ),
        recommendation=(
            "Evaluate whether observation status or outpatient management would be appropriate. "
            "Document specific clinical indicators that require inpatient-level monitoring if "
            "applicable."
        ),
        financial_impact=-claim.billed_amount,
    )


def hemodynamic_instability_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Two or more unstable vitals support admission.

    A supporting signal is not an adverse finding, so this rule never
    produces one. The backend reads the same signals through
    ``instability_signals`` when assessing severity of illness.
    """
    return None


# Intensity of service


def low_intensity_services_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """None of the six hospital-level resource indicators is set."""
    if any(claim.resource_flags.values()):
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-IS-001",
        category=Category.INTENSITY_OF_SERVICE,
        severity=Severity.HIGH,
        description=(
            "No hospital-level services identified: no IV medications required, no ICU care, no "
            "surgical procedures, no telemetry, no supplemental oxygen, and no isolation "
            "precautions. Services provided could potentially be delivered at a lower level of care."
        ),
        recommendation=(
            "Review whether oral medications, outpatient monitoring, or observation status would "
            "have been appropriate. Document any services requiring inpatient-level nursing or "
            "monitoring intensity."
        ),
        financial_impact=-claim.billed_amount,
    )


def single_iv_dose_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """One IV dose followed by a switch to oral therapy."""
    notes = NoteMatcher(claim.clinical_notes)
    single_dose = notes.any(("x1 dose", "one dose", "single dose")) and notes.any(
        ("transitioned to oral", "switched to oral", "converted to po")
    )
    if not single_dose or claim.icu_admission or claim.surgical_procedure:
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-IS-002",
        category=Category.INTENSITY_OF_SERVICE,
        severity=Severity.MEDIUM,
        description=(
            "Patient received only a single IV medication dose before transitioning to oral "
            "therapy. A single IV dose in the ED does not typically justify inpatient admission "
            "unless other intensity criteria are met."
        ),
        recommendation=(
            "Document clinical rationale for why ongoing IV therapy or inpatient monitoring was "
            "required beyond the initial IV dose. Consider whether ED observation or outpatient "
            "follow-up was appropriate."
        ),
        financial_impact=-(claim.billed_amount * 0.6),
    )


# Admission criteria


def elective_admission_no_procedure_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Elective diagnostic admission with no procedure or ICU care."""
    if claim.admission_type != AdmissionType.ELECTIVE:
        return None
    if claim.surgical_procedure or claim.icu_admission:
        return None

    notes = NoteMatcher(claim.clinical_notes)
    if not notes.any(("diagnostic", "evaluation", "workup", "monitoring")):
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-AC-001",
        category=Category.ADMISSION_CRITERIA,
        severity=Severity.CRITICAL,
        description=(
            "Elective admission for diagnostic evaluation without a therapeutic procedure or "
            "ICU-level care. Elective diagnostic workups and monitoring can typically be performed "
            "in an outpatient or observation setting."
        ),
        recommendation=(
            "Review admission criteria. Elective admissions should have a clear therapeutic intent. "
            "If the admission is for pre-procedural evaluation, document the planned procedure and "
            "medical necessity for inpatient pre-op stay."
        ),
        financial_impact=-claim.billed_amount,
    )


def outpatient_manageable_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Notes describe an outpatient-capable patient with stable vitals."""
    notes = NoteMatcher(claim.clinical_notes)
    outpatient_indicators = notes.any(
        (
            "could have been managed as outpatient",
            "could be managed outpatient",
            "outpatient management appropriate",
            "could have been managed in outpatient",
        )
    ) or notes.all(("oral", "tolerating", "ambulatory"))

    vitals = claim.admission_vitals
    stable_vitals = vitals.heart_rate <= 100 and vitals.temperature <= 99.5 and vitals.o2_saturation >= 95

    if not (outpatient_indicators and stable_vitals) or claim.icu_admission:
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-AC-002",
        category=Category.ADMISSION_CRITERIA,
        severity=Severity.CRITICAL,
        description=(
            "Clinical documentation suggests condition is manageable in an outpatient setting. "
            "Patient is tolerating oral intake, ambulatory, and hemodynamically stable. Inpatient "
            "admission criteria may not be met."
        ),
        recommendation=(
            "Consider retrospective review for observation or outpatient status. Ensure "
            "documentation clearly supports why inpatient-level care was required despite stable "
            "presentation."
        ),
        financial_impact=-claim.billed_amount,
    )


# Level of care


def observation_appropriate_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Short stay with a mildly abnormal presentation that resolved quickly."""
    if claim.length_of_stay > 2:
        return None

    systolic, _ = require_blood_pressure(claim)
    vitals = claim.admission_vitals
    mildly_abnormal = (
        100 < vitals.heart_rate <= 110
        or 99.5 < vitals.temperature <= 101.0
        or 92 <= vitals.o2_saturation < 95
        or 90 <= systolic < 100
    )
    if not mildly_abnormal or claim.icu_admission or claim.surgical_procedure:
        return None

    notes = NoteMatcher(claim.clinical_notes)
    if not notes.any(("responded", "improved", "resolved", "stabilized")):
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-LOC-001",
        category=Category.LEVEL_OF_CARE,
        severity=Severity.HIGH,
        description=(
            "Short length of stay (<=2 days) with mildly abnormal presentation that responded "
            "quickly to treatment. This pattern is consistent with observation-level care rather "
            "than full inpatient admission."
        ),
        recommendation=(
            "Consider whether observation status would have been more appropriate. Document "
            "specific clinical criteria that required inpatient admission at the time of the "
            "admission decision. If converted to observation, reimbursement may be at outpatient "
            "rates."
        ),
        financial_impact=-(claim.billed_amount * 0.5),
    )


# Continued stay


def excessive_los_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Stay longer than five days without complications, ICU or surgery."""
    notes = NoteMatcher(claim.clinical_notes)
    has_complications = claim.icu_admission or notes.any(
        ("complication", "readmit", "deteriorat", "icu transfer", "return to or")
    )
    if claim.length_of_stay <= 5 or has_complications or claim.surgical_procedure:
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-CS-001",
        category=Category.CONTINUED_STAY,
        severity=Severity.MEDIUM,
        description=(
            f"Length of stay ({claim.length_of_stay} days) exceeds typical geometric mean for this "
            "DRG without documented complications, ICU stays, or surgical procedures. Extended stay "
            "may not be justified by clinical documentation."
        ),
        recommendation=(
            "Review daily progress notes for continued stay justification. Document specific "
            "clinical barriers to discharge (e.g., pending procedures, unstable vitals, IV "
            "medication requirements, discharge planning barriers)."
        ),
        financial_impact=-(claim.billed_amount * 0.3),
    )


# Documentation gaps


def contradictory_documentation_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Notes state outright that inpatient care was not needed."""
    notes = NoteMatcher(claim.clinical_notes)
    if not notes.any(
        (
            "could have been managed",
            "not require inpatient",
            "no indication for admission",
            "social admit",
        )
    ):
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-DOC-001",
        category=Category.DOCUMENTATION_GAP,
        severity=Severity.CRITICAL,
        description=(
            "Clinical documentation contains language suggesting the condition did not require "
            "inpatient admission. This significantly weakens medical necessity justification and "
            "increases denial risk on payer review."
        ),
        recommendation=(
            "Query attending physician to clarify medical necessity. If inpatient care was truly "
            "required, documentation must be amended to remove contradictory language and add "
            "specific clinical criteria supporting admission. CDI query recommended."
        ),
        financial_impact=-claim.billed_amount,
    )


def failed_outpatient_not_documented_rule(claim: MedNecessityClaim) -> MedNecessityFinding | None:
    """Outpatient-first condition admitted without a documented outpatient failure."""
    notes = NoteMatcher(claim.clinical_notes)
    outpatient_first_condition = notes.any(
        ("cellulitis", "pneumonia", "asthma", "copd exacerbation")
    ) or (notes.has("uti") and not notes.has("sepsis"))
    failure_documented = notes.any(
        ("failed oral", "failed outpatient", "refractory", "not responding to", "worsening despite")
    )

    if not outpatient_first_condition or failure_documented:
        return None
    if claim.icu_admission or claim.admission_type == AdmissionType.EMERGENCY:
        return None

    return MedNecessityFinding(
        rule_id="RULE-MN-DOC-002",
        category=Category.DOCUMENTATION_GAP,
        severity=Severity.MEDIUM,
        description=(
            "For this condition, payers typically require documentation of failed outpatient "
            "therapy before approving inpatient admission. No documentation of failed oral "
            "antibiotics, outpatient treatment failure, or clinical progression despite outpatient "
            "management."
        ),
        recommendation=(
            "Document any prior outpatient treatment attempts and why they were insufficient. If "
            "the patient was directly admitted, document clinical severity that precluded "
            "outpatient trial. This documentation strengthens medical necessity and reduces denial "
            "risk."
        ),
        financial_impact=-(claim.billed_amount * 0.4),
    )


NECESSITY_RULES: tuple[Rule, ...] = (
    # Severity of illness
    Rule("RULE-MN-SI-001", "Stable Vitals with Low Acuity", "SEVERITY_OF_ILLNESS", stable_vitals_low_acuity_rule),
    Rule(
        "RULE-MN-SI-002",
        "Hemodynamic Instability Supports Admission",
        "SEVERITY_OF_ILLNESS",
        hemodynamic_instability_rule,
    ),
    # Intensity of service
    Rule(
        "RULE-MN-IS-001",
        "Low Intensity Services - Outpatient Capable",
        "INTENSITY_OF_SERVICE",
        low_intensity_services_rule,
    ),
    Rule("RULE-MN-IS-002", "Single IV Dose Does Not Justify Admission", "INTENSITY_OF_SERVICE", single_iv_dose_rule),
    # Admission criteria
    Rule(
        "RULE-MN-AC-001",
        "Elective Admission Without Procedure",
        "ADMISSION_CRITERIA",
        elective_admission_no_procedure_rule,
    ),
    Rule("RULE-MN-AC-002", "Condition Manageable as Outpatient", "ADMISSION_CRITERIA", outpatient_manageable_rule),
    # Level of care
    Rule("RULE-MN-LOC-001", "Observation Level of Care Appropriate", "LEVEL_OF_CARE", observation_appropriate_rule),
    # Continued stay
    Rule(
        "RULE-MN-CS-001",
        "Excessive Length of Stay Without Complications",
        "CONTINUED_STAY",
        excessive_los_rule,
    ),
    # Documentation gaps
    Rule(
        "RULE-MN-DOC-001",
        "Missing Clinical Indicators for Diagnosis",
        "DOCUMENTATION_GAP",
        contradictory_documentation_rule,
    ),
    Rule(
        "RULE-MN-DOC-002",
        "Failed Outpatient Treatment Not Documented",
        "DOCUMENTATION_GAP",
        failed_outpatient_not_documented_rule,
    ),
)
