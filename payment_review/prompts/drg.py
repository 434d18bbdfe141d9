"""Prompt builders for DRG clinical validation.

The rule-based backend ignores these prompts; they define the request a
generative backend would receive.
"""

from __future__ import annotations

from payment_review.backends.base import DRGContext
from payment_review.schemas.drg import DRGClaim, DRGFinding
from payment_review.utils import format_amount

from .formatting import diagnosis_line, diagnosis_list, numbered_findings


def build_drg_validation_prompt(context: DRGContext) -> str:
    """Main validation prompt covering sequencing, DRG, CC/MCC and missed diagnoses."""
    claim = context.claim

    procedure_section = ""
    if claim.principal_procedure:
        procedure_section = f"## Principal Procedure\n- {claim.principal_procedure}\n"

    return f"""You are a certified clinical documentation integrity (CDI) specialist and DRG validation expert with deep knowledge of ICD-10-CM/PCS coding guidelines, MS-DRG grouper logic, and CMS reimbursement rules.

Review the following inpatient claim and determine whether the MS-DRG assignment is clinically supported by the documentation.

## Patient Record
- Patient: {claim.beneficiary_name} ({claim.beneficiary_id})
- Admission: {claim.admission_date} -> Discharge: {claim.discharge_date}
- Length of Stay: {claim.length_of_stay} days
- Admission Type: {claim.admission_type.value}
- Discharge Status: {claim.discharge_status.value}
- Attending: {claim.attending_physician_name} ({claim.attending_specialty})

## Assigned DRG
- DRG {claim.assigned_drg}: {claim.assigned_drg_description}
- DRG Weight: {claim.assigned_drg_weight}
- Billed Amount: ${format_amount(claim.billed_amount)}
- Hospital Base Rate: ${format_amount(context.reference.base_rate)}

## Principal Diagnosis
{diagnosis_line(claim.primary_diagnosis)}

## Secondary Diagnoses
{diagnosis_list(claim.secondary_diagnoses)}

{procedure_section}
## Clinical Notes
{claim.clinical_notes}

## Validation Tasks
1. **Principal Diagnosis Sequencing**: Is the principal diagnosis sequenced correctly per UHDDS guidelines? Should a different diagnosis be principal?
2. **DRG Assignment**: Does the assigned DRG accurately reflect the principal diagnosis and procedures performed?
3. **MCC/CC Validation**: Are all coded MCC and CC diagnoses clinically supported by the documentation? Are there clinical indicators (lab values, vital signs, treatments) that substantiate each complication/comorbidity?
4. **Missing Diagnoses**: Are there conditions documented in the clinical notes that should be coded but are missing? Would adding them change the DRG?
5. **Upcoding/Downcoding Assessment**: Is there evidence that the DRG is coded to a higher severity than documented (upcoding) or lower severity than documented (downcoding)?

Respond with a JSON object:
{{
  "validationStatus": "Validated" | "Queried" | "Upcoded" | "Downcoded",
  "expectedDRG": "<drg_code>",
  "expectedDRGDescription": "<description>",
  "expectedDRGWeight": <number>,
  "confidence": <0-100>,
  "findings": [
    {{
      "ruleId": "<identifier>",
      "category": "DRG_ASSIGNMENT" | "CC_MCC_VALIDATION" | "CLINICAL_CRITERIA" | "CODING_SEQUENCE" | "UPCODING" | "DOWNCODING",
      "severity": "Critical" | "High" | "Medium" | "Low",
      "description": "<what was found>",
      "recommendation": "<what should be done>",
      "financialImpact": <positive_if_underbilled_negative_if_overbilled>
    }}
  ],
  "summary": "<2-3 sentence plain English summary>"
}}"""


def build_cc_mcc_validation_prompt(context: DRGContext) -> str:
    """Prompt asking whether each coded CC/MCC is supported by the notes."""
    claim = context.claim

    flagged = [dx for dx in claim.diagnoses if dx.is_mcc or dx.is_cc]
    flagged_lines = "\n".join(
        f"- {dx.code}: {dx.description} -> {'MCC' if dx.is_mcc else 'CC'}" for dx in flagged
    )

    return f"""You are a clinical coding auditor specializing in CC (Complication/Comorbidity) and MCC (Major Complication/Comorbidity) validation for MS-DRG assignment.

For each CC/MCC diagnosis listed below, determine whether the clinical documentation supports its inclusion. A CC/MCC must meet ALL of the following:
1. The condition is clearly documented by the attending physician
2. Clinical indicators (labs, vitals, imaging, treatments) corroborate the diagnosis
3. The condition required clinical evaluation, monitoring, or treatment during the encounter
4. The condition is not an integral part of the principal diagnosis

## Patient: {claim.beneficiary_name}
## Assigned DRG: {claim.assigned_drg} - {claim.assigned_drg_description}

## CC/MCC Codes to Validate
{flagged_lines or "No CC/MCC codes assigned"}

## Clinical Notes
{claim.clinical_notes}

For each CC/MCC code, respond with:
{{
  "code": "<ICD-10 code>",
  "supported": true | false,
  "clinicalEvidence": "<specific documentation that supports or contradicts>",
  "recommendation": "<keep, remove, or query physician>"
}}"""


def build_clinical_criteria_prompt(context: DRGContext) -> str:
    claim = context.claim
    secondary_lines = "\n".join(
        f"- Secondary: {dx.code} - {dx.description}" for dx in claim.secondary_diagnoses
    )

    return f"""You are a physician advisor reviewing clinical criteria for coded diagnoses. Your role is to determine whether each coded diagnosis meets its clinical definition based on the documentation.

## Patient: {claim.beneficiary_name}
## Admission: {claim.admission_date} -> {claim.discharge_date}

## All Coded Diagnoses
- Principal: {claim.primary_diagnosis.code} - {claim.primary_diagnosis.description}
{secondary_lines}

## Clinical Notes
{claim.clinical_notes}

For each diagnosis, evaluate:
1. Does the documentation meet the clinical definition for this diagnosis?
2. Are the required clinical criteria present (e.g., for sepsis: documented infection + SIRS criteria + organ dysfunction)?
3. Could a more specific or accurate code be used?
4. Are there documented conditions NOT yet coded that meet clinical criteria?

Focus especially on high-value diagnoses: sepsis/severe sepsis/septic shock, respiratory failure, acute kidney injury staging, heart failure classification, and any MCC-qualifying conditions.

Respond with a structured assessment for each diagnosis."""


def build_drg_recommendation_prompt(claim: DRGClaim, findings: list[DRGFinding]) -> str:
    """Action-plan prompt for the CDI team from existing findings."""
    return f"""Based on the following DRG validation findings for {claim.beneficiary_name} ({claim.id}), generate a prioritized action plan for the Clinical Documentation Improvement (CDI) team.

## Current Assignment
- DRG {claim.assigned_drg}: {claim.assigned_drg_description}
- Billed: ${format_amount(claim.billed_amount)}

## Validation Findings
{numbered_findings(findings)}

Generate:
1. **Priority Actions**: Ordered list of what the CDI specialist should do first
2. **Physician Query Templates**: Draft query language for any items requiring physician clarification
3. **Expected DRG Impact**: What the DRG should change to and the financial variance
4. **Timeline**: Recommended timeline for resolution (urgent = within 24hrs, standard = within 5 business days)
5. **Documentation Tips**: Specific documentation improvements to prevent recurrence"""
