"""DRG clinical validation rules.

Each rule inspects one ``DRGClaim`` (diagnosis codes, assigned DRG and the
clinical notes) and returns a ``DRGFinding`` or None. Severity and financial
impact are fixed per rule; a positive impact is a missed-revenue
opportunity, a negative impact is overbilling.
"""

from __future__ import annotations

import re

from payment_review.rules.matching import NoteMatcher
from payment_review.rules.models import Rule
from payment_review.schemas.common import Severity
from payment_review.schemas.drg import DRGClaim, DRGFinding, DRGFindingCategory

VENTILATION_PATTERN = r"(?:mechanical ventilation|intubat|ventilator).*?(\d+)\s*(?:hours|hrs|days)"
LACTIC_ACID_PATTERN = r"lactic acid\s+([\d.]+)"
LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")

PCI_DRGS = ("247", "248", "249")
PROLONGED_VENTILATION_DRGS = ("207", "208")


def has_dx_code(claim: DRGClaim, prefix: str) -> bool:
    """True when the principal or any secondary code starts with ``prefix``."""
    return any(dx.code.startswith(prefix) for dx in claim.diagnoses)


def has_secondary_mcc(claim: DRGClaim) -> bool:
    return any(dx.is_mcc for dx in claim.secondary_diagnoses)


def _principal_startswith(claim: DRGClaim, *prefixes: str) -> bool:
    return claim.primary_diagnosis.code.startswith(prefixes)


def _leading_float(text: str) -> float | None:
    match = LEADING_NUMBER.match(text)
    return float(match.group(0)) if match else None


# Sepsis


def sepsis_missed_principal_rule(claim: DRGClaim) -> DRGFinding | None:
    """Sepsis documented while a localized infection is sequenced as principal."""
    notes = NoteMatcher(claim.clinical_notes)
    sepsis_in_notes = notes.any(("sepsis", "septicemia", "bacteremia")) or notes.all(
        ("sirs", "infection")
    )
    if not sepsis_in_notes or _principal_startswith(claim, "A41"):
        return None
    if not _principal_startswith(claim, "N39", "J18", "L03"):
        return None

    principal = claim.primary_diagnosis
    return DRGFinding(
        rule_id="RULE-SEP-001",
        category=DRGFindingCategory.CODING_SEQUENCE,
        severity=Severity.CRITICAL,
        description=(
            f'Clinical notes reference sepsis/SIRS criteria but principal diagnosis is '
            f'"{principal.description}" ({principal.code}). Per ICD-10 and Coding Clinic '
            "guidelines, when sepsis is present with a localized infection, sepsis (A41.x) "
            "should be sequenced as the principal diagnosis."
        ),
        recommendation=(
            "Query attending physician to confirm sepsis as reason for admission. If confirmed, "
            "recode A41.9 as principal diagnosis and move current principal to secondary. Add "
            "R65.20 (severe sepsis) if organ dysfunction criteria met."
        ),
        financial_impact=3100,
    )


def sepsis_mcc_unsupported_rule(claim: DRGClaim) -> DRGFinding | None:
    """Respiratory failure MCC on a sepsis claim without supporting documentation."""
    if not _principal_startswith(claim, "A41"):
        return None
    if not any(dx.code.startswith("J96") and dx.is_mcc for dx in claim.secondary_diagnoses):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    supported = (
        notes.any(("intubat", "mechanical ventilation", "bipap", "high-flow", "pao2", "hypoxemi"))
        # saturations in the 80s
        or notes.all(("o2 sat", "8"))
    )
    contradicted = notes.has("room air") and notes.any(
        ("96%", "97%", "98%", "99%", "no supplemental oxygen")
    )
    if supported and not contradicted:
        return None

    return DRGFinding(
        rule_id="RULE-SEP-002",
        category=DRGFindingCategory.CC_MCC_VALIDATION,
        severity=Severity.HIGH,
        description=(
            "Acute respiratory failure (J96.00) coded as MCC but clinical documentation does not "
            "support respiratory failure criteria. Patient maintained normal oxygenation without "
            "supplemental oxygen support."
        ),
        recommendation=(
            "Query physician regarding clinical basis for respiratory failure diagnosis. If not "
            "clinically supported, remove J96.00. This would change DRG from septicemia w MCC to "
            "septicemia w/o MCC."
        ),
        financial_impact=-8700,
    )


def septic_shock_missed_rule(claim: DRGClaim) -> DRGFinding | None:
    """Vasopressor-dependent shock documented without R65.21 or R57.2."""
    if not _principal_startswith(claim, "A41"):
        return None
    if has_dx_code(claim, "R65.21") or has_dx_code(claim, "R57.2"):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    shock_indicators = notes.any(("vasopressor", "norepinephrine", "levophed", "dopamine")) and notes.any(
        ("septic shock", "map", "bp 7", "bp 6", "hypotension")
    )

    high_lactate = False
    lactate = notes.search(LACTIC_ACID_PATTERN)
    if lactate:
        value = _leading_float(lactate.group(1))
        high_lactate = value is not None and value > 4.0

    if not shock_indicators and not (high_lactate and notes.has("vasopressor")):
        return None

    return DRGFinding(
        rule_id="RULE-SEP-003",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.CRITICAL,
        description=(
            "Clinical notes document vasopressor use and hemodynamic instability consistent with "
            "septic shock, but R65.21 (septic shock) is not coded. Septic shock is an MCC that "
            "significantly impacts DRG assignment."
        ),
        recommendation=(
            "Query physician to confirm septic shock. If confirmed, add R65.21. This would upgrade "
            "DRG to septicemia with MCC, reflecting true clinical severity and resource utilization."
        ),
        financial_impact=8700,
    )


def sepsis_sequence_error_rule(claim: DRGClaim) -> DRGFinding | None:
    """Sepsis and severe sepsis coded only as secondary diagnoses."""
    if _principal_startswith(claim, "A41"):
        return None
    secondary_codes = [dx.code for dx in claim.secondary_diagnoses]
    if not any(code.startswith("A41") for code in secondary_codes):
        return None
    if not any(code.startswith("R65.2") for code in secondary_codes):
        return None

    return DRGFinding(
        rule_id="RULE-SEP-004",
        category=DRGFindingCategory.CODING_SEQUENCE,
        severity=Severity.HIGH,
        description=(
            "Sepsis (A41.x) and severe sepsis (R65.20) are coded as secondary diagnoses but per "
            "ICD-10 sequencing guidelines, sepsis should be the principal diagnosis when it meets "
            'the definition of "condition established after study."'
        ),
        recommendation=(
            "Resequence A41.x as principal diagnosis. Move current principal to secondary "
            "position. This may change the MS-DRG assignment."
        ),
        financial_impact=1800,
    )


# Cardiovascular


def heart_failure_cc_missed_rule(claim: DRGClaim) -> DRGFinding | None:
    """Unspecified heart failure or uncoded CKD on a heart failure admission."""
    if not _principal_startswith(claim, "I50"):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    acute_on_chronic = notes.any(("acute-on-chronic", "acute decompensated")) or notes.all(
        ("acute", "chronic", "heart failure")
    )
    # systolic, diastolic, combined
    specific_type_coded = any(has_dx_code(claim, code) for code in ("I50.2", "I50.3", "I50.4"))
    ckd_uncoded = notes.any(("ckd", "chronic kidney", "egfr")) and not has_dx_code(claim, "N18")

    details: list[str] = []
    impact = 0
    if acute_on_chronic and not specific_type_coded:
        details.append(
            "Documentation indicates acute-on-chronic heart failure but I50.9 (unspecified) was "
            "coded. A more specific code (e.g., I50.33 for acute-on-chronic combined HF) may "
            "qualify as higher severity."
        )
        impact += 5000
    if ckd_uncoded:
        details.append(
            "Chronic kidney disease documented in notes (eGFR values present) but not coded. CKD "
            "stage 3+ (N18.3+) qualifies as CC."
        )
        impact += 2900

    if not details:
        return None

    return DRGFinding(
        rule_id="RULE-CARD-001",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.HIGH,
        description=" ".join(details),
        recommendation=(
            "Query physician for specific heart failure type and CKD staging. Code to highest "
            "specificity supported by documentation. Missing CCs/MCCs may upgrade DRG from HF w/o "
            "CC/MCC to HF w CC or w MCC."
        ),
        financial_impact=impact,
    )


def cardiac_procedure_mismatch_rule(claim: DRGClaim) -> DRGFinding | None:
    """PCI-with-stent DRG where only a diagnostic catheterization is documented."""
    if claim.assigned_drg not in PCI_DRGS:
        return None

    notes = NoteMatcher(claim.clinical_notes)
    no_intervention = (notes.has("diagnostic") and not notes.has("interventional")) or notes.any(
        (
            "no stent",
            "no percutaneous coronary intervention",
            "not amenable to intervention",
            "medical management",
        )
    )
    if not no_intervention:
        return None

    return DRGFinding(
        rule_id="RULE-CARD-002",
        category=DRGFindingCategory.UPCODING,
        severity=Severity.CRITICAL,
        description=(
            "DRG assigned for percutaneous cardiovascular procedure with stent, but documentation "
            "indicates only diagnostic catheterization was performed. No interventional procedure "
            "or stent placement documented."
        ),
        recommendation=(
            "Recode to diagnostic cardiac catheterization DRG. Remove PCI procedure codes. This is "
            "a significant DRG discrepancy requiring immediate correction."
        ),
        financial_impact=-15250,
    )


def aki_cc_missed_rule(claim: DRGClaim) -> DRGFinding | None:
    """AKI with creatinine evidence documented but N17 not coded."""
    if has_dx_code(claim, "N17"):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    aki_in_notes = notes.any(
        ("acute kidney injury", "acute kidney failure", "aki", "acute renal failure")
    )
    creatinine_evidence = notes.has("creatinine") and notes.any(("baseline", "peaked", "elevated"))
    if not (aki_in_notes and creatinine_evidence):
        return None

    return DRGFinding(
        rule_id="RULE-CARD-003",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.MEDIUM,
        description=(
            "Acute kidney injury documented in clinical notes with supporting lab values "
            "(creatinine changes) but N17.x (AKI) is not coded. AKI qualifies as a CC."
        ),
        recommendation=(
            "Add N17.9 (AKI, unspecified) or stage-specific code based on KDIGO criteria from "
            "labs. This CC may impact DRG assignment."
        ),
        financial_impact=2700,
    )


# Respiratory


def ventilation_drg_mismatch_rule(claim: DRGClaim) -> DRGFinding | None:
    """More than 96 ventilator hours documented on a non-ventilator DRG."""
    notes = NoteMatcher(claim.clinical_notes)
    match = notes.search(VENTILATION_PATTERN)
    if not match:
        return None

    vent_hours = int(match.group(1))
    # a small number next to "days" anywhere in the notes is read as days
    if notes.has("days") and vent_hours < 30:
        vent_hours *= 24

    if vent_hours <= 96 or claim.assigned_drg in PROLONGED_VENTILATION_DRGS:
        return None

    return DRGFinding(
        rule_id="RULE-RESP-001",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.CRITICAL,
        description=(
            f"Documentation indicates {vent_hours} hours of mechanical ventilation (>96 hours "
            f"threshold) but claim is assigned DRG {claim.assigned_drg} "
            f"({claim.assigned_drg_description}). Should be grouped to DRG 207 (Respiratory "
            "System Diagnosis w Ventilator Support >96 Hours)."
        ),
        recommendation=(
            "Verify ventilator start and stop times in respiratory therapy notes. If >96 hours "
            "confirmed, add procedure code 5A1955Z and recode to DRG 207. This is a high-value "
            "DRG change."
        ),
        financial_impact=43900,
    )


def pe_cor_pulmonale_unsupported_rule(claim: DRGClaim) -> DRGFinding | None:
    """I26.09 coded while the echocardiogram shows a normal right ventricle."""
    if not any(dx.code == "I26.09" for dx in claim.diagnoses):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    normal_rv = notes.any(("rv size normal", "rv function normal", "no rv strain", "no rv dilation"))
    if not (normal_rv and notes.has("echo")):
        return None

    return DRGFinding(
        rule_id="RULE-RESP-002",
        category=DRGFindingCategory.UPCODING,
        severity=Severity.HIGH,
        description=(
            "PE coded as I26.09 (with acute cor pulmonale) but echocardiogram documents normal RV "
            'size and function with no RV strain. The "with acute cor pulmonale" code is not '
            "clinically supported."
        ),
        recommendation=(
            "Recode to I26.99 (PE without acute cor pulmonale). Remove associated respiratory "
            "failure MCC if also unsupported. This may change DRG from PE w MCC to PE w/o MCC."
        ),
        financial_impact=-6600,
    )


def status_asthmaticus_criteria_rule(claim: DRGClaim) -> DRGFinding | None:
    """J46 coded without documented refractory bronchospasm."""
    if not any(dx.code == "J46" for dx in claim.diagnoses):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    criteria_met = (
        notes.any(
            ("refractory", "intubat", "respiratory acidosis", "icu", "status asthmaticus criteria")
        )
        # elevated pCO2
        or (notes.all(("paco2", "4")) and not notes.has("36"))
    )
    criteria_not_met = (
        notes.any(("does not meet status asthmaticus", "not meet status"))
        # normal pCO2
        or notes.all(("paco2", "36"))
        or notes.all(("responded", "nebulizer"))
    )
    if criteria_met and not criteria_not_met:
        return None

    return DRGFinding(
        rule_id="RULE-RESP-003",
        category=DRGFindingCategory.UPCODING,
        severity=Severity.HIGH,
        description=(
            "Status asthmaticus (J46) coded but documentation does not demonstrate refractory "
            "bronchospasm, respiratory failure, or need for intubation. Patient responded to "
            "standard bronchodilator therapy."
        ),
        recommendation=(
            "Recode to J45.41 (moderate persistent asthma with acute exacerbation) or J45.51 "
            "(severe persistent asthma with acute exacerbation). Status asthmaticus requires "
            "documentation of life-threatening bronchospasm not responding to standard therapy."
        ),
        financial_impact=-4400,
    )


# General / cross-category


def stroke_cc_missed_rule(claim: DRGClaim) -> DRGFinding | None:
    """Post-stroke hemiplegia documented but G81 not coded."""
    if not _principal_startswith(claim, "I63", "I61"):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    hemiplegia = notes.any(("hemiplegia", "hemiparesis")) or (
        notes.has("weakness") and notes.any(("right-sided", "left-sided"))
    )
    if not hemiplegia or has_dx_code(claim, "G81"):
        return None

    return DRGFinding(
        rule_id="RULE-GEN-001",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.HIGH,
        description=(
            "Hemiplegia/hemiparesis documented following stroke but G81.x is not coded. "
            "Hemiplegia is a CC that impacts DRG assignment for cerebrovascular diagnoses."
        ),
        recommendation=(
            "Add appropriate G81.x code (G81.91 for right-sided, G81.92 for left-sided "
            "hemiplegia). Specify dominant vs non-dominant side if documented. This CC upgrades "
            "the stroke DRG."
        ),
        financial_impact=4400,
    )


def aki_severity_overcoded_rule(claim: DRGClaim) -> DRGFinding | None:
    """AKI principal with MCC secondaries while labs show only stage 1 AKI."""
    if not _principal_startswith(claim, "N17") or not has_secondary_mcc(claim):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    mild_aki = (
        notes.has("stage 1")
        or notes.all(("creatinine", "2.1", "baseline"))
        or notes.all(("no dialysis", "urine output maintained"))
    )
    mcc_contradicted = notes.any(
        ("does not meet criteria", "does not support mcc", "mild")
    ) or notes.all(("corrected", "by day"))
    if not (mild_aki and mcc_contradicted):
        return None

    return DRGFinding(
        rule_id="RULE-GEN-002",
        category=DRGFindingCategory.UPCODING,
        severity=Severity.HIGH,
        description=(
            "AKI coded as principal with MCC secondary diagnoses, but lab values indicate only "
            "Stage 1 AKI (mild). The MCC severity level is not supported by the clinical "
            "documentation."
        ),
        recommendation=(
            "Review MCC codes for clinical support. If hyponatremia or other MCC is mild and "
            "self-resolving, recode appropriately. DRG should reflect actual clinical severity."
        ),
        financial_impact=-5500,
    )


def gi_bleed_dic_missed_rule(claim: DRGClaim) -> DRGFinding | None:
    """DIC with coagulation labs documented on a GI bleed without D65."""
    if not _principal_startswith(claim, "K92", "K25", "K26"):
        return None

    notes = NoteMatcher(claim.clinical_notes)
    dic_evidence = notes.any(("dic", "disseminated intravascular coagulation")) and notes.any(
        ("d-dimer", "fibrinogen", "inr")
    )
    if not dic_evidence or has_dx_code(claim, "D65"):
        return None

    return DRGFinding(
        rule_id="RULE-GEN-003",
        category=DRGFindingCategory.DOWNCODING,
        severity=Severity.CRITICAL,
        description=(
            "Clinical documentation supports disseminated intravascular coagulation (DIC) with "
            "elevated D-dimer, low fibrinogen, and coagulopathy, but D65 is not coded. DIC is an "
            "MCC that significantly impacts DRG weight."
        ),
        recommendation=(
            "Add D65 (DIC) based on documented lab findings. This MCC upgrades GI hemorrhage DRG "
            "from w/o CC/MCC to w MCC, reflecting the true clinical complexity."
        ),
        financial_impact=7200,
    )


DRG_RULES: tuple[Rule, ...] = (
    # Sepsis
    Rule("RULE-SEP-001", "Sepsis Missed as Principal Diagnosis", "CODING_SEQUENCE", sepsis_missed_principal_rule),
    Rule("RULE-SEP-002", "Sepsis MCC Not Clinically Supported", "CC_MCC_VALIDATION", sepsis_mcc_unsupported_rule),
    Rule("RULE-SEP-003", "Septic Shock Not Coded", "DOWNCODING", septic_shock_missed_rule),
    Rule("RULE-SEP-004", "Sepsis Principal Diagnosis Sequence Error", "CODING_SEQUENCE", sepsis_sequence_error_rule),
    # Cardiovascular
    Rule("RULE-CARD-001", "Heart Failure MCC/CC Omission", "DOWNCODING", heart_failure_cc_missed_rule),
    Rule(
        "RULE-CARD-002",
        "Interventional Procedure DRG Without Documentation",
        "UPCODING",
        cardiac_procedure_mismatch_rule,
    ),
    Rule("RULE-CARD-003", "Acute Kidney Injury CC Omission", "DOWNCODING", aki_cc_missed_rule),
    # Respiratory
    Rule("RULE-RESP-001", "Mechanical Ventilation Duration vs DRG", "DOWNCODING", ventilation_drg_mismatch_rule),
    Rule("RULE-RESP-002", "PE Acute Cor Pulmonale Not Supported", "UPCODING", pe_cor_pulmonale_unsupported_rule),
    Rule("RULE-RESP-003", "Status Asthmaticus Criteria Not Met", "UPCODING", status_asthmaticus_criteria_rule),
    # General
    Rule("RULE-GEN-001", "Stroke Complication CC Omission", "DOWNCODING", stroke_cc_missed_rule),
    Rule("RULE-GEN-002", "AKI Severity Overcoded", "UPCODING", aki_severity_overcoded_rule),
    Rule("RULE-GEN-003", "GI Hemorrhage MCC Omission - DIC", "DOWNCODING", gi_bleed_dic_missed_rule),
)
