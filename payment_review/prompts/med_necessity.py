"""Prompt builders for medical necessity review."""

from __future__ import annotations

from payment_review.backends.base import MedNecessityContext
from payment_review.schemas.med_necessity import MedNecessityClaim, MedNecessityFinding
from payment_review.utils import format_amount

from .formatting import bullet_list, diagnosis_list, numbered_findings, yes_no


def _lab_lines(claim: MedNecessityClaim, abnormal_only: bool = False) -> str:
    lines = []
    for lab in claim.admission_lab_values:
        if abnormal_only and not lab.abnormal:
            continue
        marker = " [ABNORMAL]" if lab.abnormal and not abnormal_only else ""
        lines.append(f"- {lab.name}: {lab.value} {lab.unit}{marker}")
    return "\n".join(lines)


def build_med_necessity_review_prompt(context: MedNecessityContext) -> str:
    """Main review prompt over vitals, labs, services and notes."""
    claim = context.claim
    vitals = claim.admission_vitals

    procedure_section = ""
    if claim.principal_procedure:
        procedure_section = f"## Principal Procedure\n- {claim.principal_procedure}\n"

    return f"""You are a certified utilization review nurse and physician advisor with expertise in InterQual, MCG, and Milliman medical necessity criteria. You specialize in evaluating whether inpatient admissions meet medical necessity requirements for acute care hospitalization.

Review the following inpatient admission and determine whether it meets medical necessity criteria for inpatient level of care.

## Patient Record
- Patient: {claim.beneficiary_name} ({claim.beneficiary_id})
- Admission: {claim.admission_date} -> Discharge: {claim.discharge_date}
- Length of Stay: {claim.length_of_stay} days
- Admission Type: {claim.admission_type.value}
- Discharge Status: {claim.discharge_status.value}
- Attending: {claim.attending_physician_name} ({claim.attending_specialty})

## DRG / Billing
- DRG {claim.assigned_drg}: {claim.assigned_drg_description}
- Billed Amount: ${format_amount(claim.billed_amount)}

## Principal Diagnosis
- {claim.primary_diagnosis.code}: {claim.primary_diagnosis.description}

## Secondary Diagnoses
{diagnosis_list(claim.secondary_diagnoses)}

{procedure_section}
## Admission Vitals
- Blood Pressure: {vitals.blood_pressure}
- Heart Rate: {vitals.heart_rate:g} bpm
- Temperature: {vitals.temperature:g} F
- Respiratory Rate: {vitals.respiratory_rate:g} /min
- O2 Saturation: {vitals.o2_saturation:g}%

## Admission Lab Values
{_lab_lines(claim)}

## Treatments Provided
{bullet_list(claim.treatments_provided)}

## Resource Utilization Indicators
- IV Medications Required: {yes_no(claim.iv_medications_required)}
- ICU Admission: {yes_no(claim.icu_admission)}
- Surgical Procedure: {yes_no(claim.surgical_procedure)}
- Telemetry Required: {yes_no(claim.telemetry_required)}
- Supplemental Oxygen: {yes_no(claim.oxygen_required)}
- Isolation Required: {yes_no(claim.isolation_required)}

## Clinical Notes
{claim.clinical_notes}

## Review Criteria
Evaluate the following medical necessity dimensions:

1. **Severity of Illness (SI)**: Does the patient's condition demonstrate acute severity requiring inpatient-level monitoring and intervention? Consider vital sign abnormalities, lab derangements, and clinical acuity.

2. **Intensity of Service (IS)**: Do the services provided require hospital-level resources that cannot be delivered in a lower level of care? Consider IV medications, monitoring requirements, nursing intensity, and procedure complexity.

3. **Admission Criteria**: Does the clinical presentation meet recognized admission criteria (InterQual/MCG)? Could the patient have been safely managed as observation or outpatient?

4. **Level of Care**: What is the appropriate level of care? (Inpatient, Observation, Outpatient, SNF, Home)

5. **Continued Stay Justification**: If length of stay exceeds expected, is the extended stay clinically justified?

6. **Documentation Gaps**: Are there any missing elements that would strengthen or weaken the medical necessity determination?

Respond with a JSON object:
{{
  "medNecessityStatus": "Meets Criteria" | "Does Not Meet" | "Observation" | "Queried",
  "recommendedLevelOfCare": "Inpatient" | "Observation" | "Outpatient" | "Skilled Nursing" | "Home",
  "criteriaAssessment": {{
    "severityOfIllness": "Met" | "Not Met" | "Partially Met",
    "intensityOfService": "Met" | "Not Met" | "Partially Met",
    "admissionCriteria": "Met" | "Not Met" | "Partially Met",
    "continuedStay": "Justified" | "Not Justified" | "Indeterminate"
  }},
  "confidence": <0-100>,
  "denialRisk": <0-100>,
  "estimatedDenialAmount": <number>,
  "findings": [
    {{
      "ruleId": "<identifier>",
      "category": "SEVERITY_OF_ILLNESS" | "INTENSITY_OF_SERVICE" | "ADMISSION_CRITERIA" | "LEVEL_OF_CARE" | "CONTINUED_STAY" | "DOCUMENTATION_GAP",
      "severity": "Critical" | "High" | "Medium" | "Low",
      "description": "<what was found>",
      "recommendation": "<what should be done>",
      "financialImpact": <estimated_denial_amount_if_applicable>
    }}
  ],
  "summary": "<2-3 sentence plain English summary>"
}}"""


def build_severity_of_illness_prompt(context: MedNecessityContext) -> str:
    claim = context.claim
    vitals = claim.admission_vitals

    return f"""You are a physician advisor specializing in severity of illness assessment for inpatient medical necessity determinations.

Evaluate whether this patient's clinical presentation demonstrates acute severity of illness requiring inpatient-level care. Apply InterQual criteria for SI assessment.

## Patient: {claim.beneficiary_name}
## Principal Diagnosis: {claim.primary_diagnosis.code} - {claim.primary_diagnosis.description}
## Admission Type: {claim.admission_type.value}

## Admission Vitals
- BP: {vitals.blood_pressure}, HR: {vitals.heart_rate:g}, Temp: {vitals.temperature:g}F
- RR: {vitals.respiratory_rate:g}, O2 Sat: {vitals.o2_saturation:g}%

## Abnormal Lab Values
{_lab_lines(claim, abnormal_only=True) or "No abnormal labs"}

## Clinical Notes
{claim.clinical_notes}

Assess each SI criterion:
1. **Vital Sign Instability**: Are vitals outside normal parameters indicating acute illness?
2. **Laboratory Derangements**: Do lab values indicate organ dysfunction or acute process?
3. **Clinical Acuity**: Does the overall presentation require continuous monitoring?
4. **Risk of Deterioration**: Without inpatient care, what is the risk of clinical decline?

Respond with:
{{
  "severityOfIllness": "Met" | "Not Met" | "Partially Met",
  "justification": "<specific clinical indicators supporting determination>",
  "criticalFindings": ["<list of specific findings>"],
  "riskLevel": "High" | "Moderate" | "Low"
}}"""


def build_intensity_of_service_prompt(context: MedNecessityContext) -> str:
    claim = context.claim

    return f"""You are a utilization review specialist assessing intensity of service for medical necessity determination.

Evaluate whether the services provided to this patient require hospital-level resources that could not be delivered at a lower level of care.

## Patient: {claim.beneficiary_name}
## Principal Diagnosis: {claim.primary_diagnosis.code} - {claim.primary_diagnosis.description}
## Length of Stay: {claim.length_of_stay} days

## Treatments & Services Provided
{bullet_list(claim.treatments_provided)}

## Resource Utilization
- IV Medications: {yes_no(claim.iv_medications_required)}
- ICU Level Care: {yes_no(claim.icu_admission)}
- Surgical Procedure: {yes_no(claim.surgical_procedure)}
- Cardiac Monitoring/Telemetry: {yes_no(claim.telemetry_required)}
- Supplemental Oxygen: {yes_no(claim.oxygen_required)}
- Isolation Precautions: {yes_no(claim.isolation_required)}

## Clinical Notes
{claim.clinical_notes}

Evaluate each IS dimension:
1. **Treatment Complexity**: Do treatments require hospital-level administration/monitoring?
2. **Monitoring Requirements**: Does the patient need continuous or frequent monitoring?
3. **Nursing Intensity**: Does nursing care exceed what can be provided at lower levels?
4. **Alternative Settings**: Could these services be safely delivered as observation, outpatient, or at home?

Respond with:
{{
  "intensityOfService": "Met" | "Not Met" | "Partially Met",
  "justification": "<specific services requiring inpatient level>",
  "alternativeSettings": ["<viable lower-level settings if any>"],
  "keyServices": ["<services that drive inpatient need>"]
}}"""


def build_med_necessity_recommendation_prompt(
    claim: MedNecessityClaim, findings: list[MedNecessityFinding]
) -> str:
    """Action-plan prompt for the utilization review team."""
    return f"""Based on the following medical necessity review findings for {claim.beneficiary_name} ({claim.id}), generate a prioritized action plan for the Utilization Review (UR) team.

## Current Assignment
- DRG {claim.assigned_drg}: {claim.assigned_drg_description}
- Billed: ${format_amount(claim.billed_amount)}
- Length of Stay: {claim.length_of_stay} days
- Admission Type: {claim.admission_type.value}

## Review Findings
{numbered_findings(findings)}

Generate:
1. **Priority Actions**: Ordered list of what the UR nurse should do first
2. **Physician Advisor Referral**: Whether this case needs physician advisor review and why
3. **Peer-to-Peer Preparation**: Key clinical points for a peer-to-peer review with the payer
4. **Documentation Improvement**: Specific documentation that would strengthen medical necessity
5. **Appeal Strategy**: If denied, recommended appeal approach and supporting evidence
6. **Level of Care Recommendation**: Whether to maintain inpatient status, convert to observation, or recommend outpatient follow-up"""
