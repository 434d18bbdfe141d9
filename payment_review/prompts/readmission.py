"""Prompt builders for readmission review."""

from __future__ import annotations

from payment_review.backends.base import ReadmissionContext
from payment_review.schemas.readmission import ReadmissionFinding, ReadmissionPair
from payment_review.utils import format_amount

from .formatting import diagnosis_list, numbered_findings, yes_no


def _hrrp_line(pair: ReadmissionPair, label: str) -> str:
    if pair.hrrp_target_condition is None:
        return ""
    return f"- {label}: {pair.hrrp_target_condition.value}"


def build_readmission_review_prompt(context: ReadmissionContext) -> str:
    """Main review prompt with both admissions and the derived pair metrics."""
    pair = context.pair

    discharge_plan_section = ""
    if pair.index_discharge_plan:
        discharge_plan_section = f"### Index Discharge Plan\n{pair.index_discharge_plan}\n"

    return f"""You are a hospital readmission review specialist with expertise in CMS Hospital Readmissions Reduction Program (HRRP), clinical relatedness determination, and payment integrity. You evaluate whether readmissions are clinically related to the index admission, potentially preventable, or candidates for DRG bundling.

Review the following readmission pair and determine the appropriate classification.

## INDEX ADMISSION
- Claim: {pair.index_claim_id}
- Patient: {pair.index_beneficiary_name} ({pair.index_beneficiary_id})
- Provider: {pair.index_provider_name} ({pair.index_provider_id})
- Admission: {pair.index_admission_date} -> Discharge: {pair.index_discharge_date}
- LOS: {pair.index_length_of_stay} days | Type: {pair.index_admission_type.value} | Discharge: {pair.index_discharge_status.value}
- Attending: {pair.index_attending_physician_name} ({pair.index_attending_specialty})
- DRG {pair.index_drg}: {pair.index_drg_description}
- Billed: ${format_amount(pair.index_billed_amount)}

### Index Principal Diagnosis
- {pair.index_primary_diagnosis.code}: {pair.index_primary_diagnosis.description}

### Index Secondary Diagnoses
{diagnosis_list(pair.index_secondary_diagnoses)}

### Index Clinical Notes
{pair.index_clinical_notes}

{discharge_plan_section}
## READMISSION
- Claim: {pair.readmit_claim_id}
- Provider: {pair.readmit_provider_name} ({pair.readmit_provider_id})
- Admission: {pair.readmit_admission_date} -> Discharge: {pair.readmit_discharge_date}
- LOS: {pair.readmit_length_of_stay} days | Type: {pair.readmit_admission_type.value} | Discharge: {pair.readmit_discharge_status.value}
- Attending: {pair.readmit_attending_physician_name} ({pair.readmit_attending_specialty})
- DRG {pair.readmit_drg}: {pair.readmit_drg_description}
- Billed: ${format_amount(pair.readmit_billed_amount)}

### Readmission Principal Diagnosis
- {pair.readmit_primary_diagnosis.code}: {pair.readmit_primary_diagnosis.description}

### Readmission Secondary Diagnoses
{diagnosis_list(pair.readmit_secondary_diagnoses)}

### Readmission Clinical Notes
{pair.readmit_clinical_notes}

## COMPUTED METRICS
- Days Between Discharge and Readmission: {pair.days_between}
- Same Facility: {yes_no(pair.same_facility)}
- Same Attending: {yes_no(pair.same_attending)}
- Combined Billed Amount: ${format_amount(pair.combined_billed_amount)}
{_hrrp_line(pair, "HRRP Target Condition")}
- Planned Readmission: {yes_no(pair.is_planned_readmission)}

## REVIEW TASKS
1. **Clinical Relatedness**: Is the readmission diagnosis clinically related to the index admission? Consider same/similar diagnosis, complications, progression, or adverse events from index treatment.

2. **Preventability**: Could this readmission have been prevented with better discharge planning, patient education, medication management, or follow-up care?

3. **Discharge Adequacy**: Was the index discharge appropriate? Consider timing, discharge disposition, follow-up planning, and medication reconciliation.

4. **DRG Bundling**: Should these two stays be bundled as a single episode of care? Consider same-day transfers, very rapid readmissions, and continuation of treatment.

5. **HRRP Impact**: Does this readmission count toward HRRP penalty calculations? Is it an HRRP target condition within 30 days?

6. **Quality Concerns**: Does this pattern indicate systemic quality issues (e.g., revolving door admissions, premature discharge pattern)?

Respond with a JSON object:
{{
  "reviewStatus": "Clinically Related" | "Not Related" | "Planned" | "Potentially Preventable" | "Bundle Candidate",
  "clinicalRelatedness": "Definitely Related" | "Likely Related" | "Possibly Related" | "Not Related",
  "preventabilityScore": <0-100>,
  "confidence": <0-100>,
  "bundleSavings": <amount_if_bundled>,
  "hrrpPenaltyRisk": <0-100>,
  "findings": [...],
  "summary": "<2-3 sentence summary>"
}}"""


def build_clinical_relatedness_prompt(context: ReadmissionContext) -> str:
    pair = context.pair

    return f"""You are a clinical reviewer specializing in determining clinical relatedness between hospital admissions for the same patient.

Evaluate whether the readmission is clinically related to the index admission.

## Index Admission
- Diagnosis: {pair.index_primary_diagnosis.code} - {pair.index_primary_diagnosis.description}
- DRG: {pair.index_drg} - {pair.index_drg_description}
- Notes: {pair.index_clinical_notes}

## Readmission
- Diagnosis: {pair.readmit_primary_diagnosis.code} - {pair.readmit_primary_diagnosis.description}
- DRG: {pair.readmit_drg} - {pair.readmit_drg_description}
- Notes: {pair.readmit_clinical_notes}

## Timing
- Days between: {pair.days_between}

Assess relatedness across these dimensions:
1. **Diagnostic Overlap**: Same or related ICD-10 codes between admissions?
2. **Complication Chain**: Is the readmission diagnosis a known complication of the index condition or treatment?
3. **Treatment Continuity**: Does the readmission represent continuation or escalation of the same treatment course?
4. **Temporal Pattern**: Does the timing suggest clinical progression vs. new disease process?

Respond with:
{{
  "clinicalRelatedness": "Definitely Related" | "Likely Related" | "Possibly Related" | "Not Related",
  "relatednessJustification": "<specific clinical reasoning>",
  "sharedDiagnosticCodes": ["<list of overlapping codes>"],
  "complicationChain": "<description if applicable>"
}}"""


def build_discharge_adequacy_prompt(context: ReadmissionContext) -> str:
    pair = context.pair

    return f"""You are a quality improvement specialist evaluating whether the index discharge was adequate and whether the readmission could have been prevented.

## Index Admission Summary
- Diagnosis: {pair.index_primary_diagnosis.description}
- LOS: {pair.index_length_of_stay} days
- Discharge Status: {pair.index_discharge_status.value}
- Discharge Plan: {pair.index_discharge_plan or "Not documented"}
- Clinical Notes: {pair.index_clinical_notes}

## Readmission ({pair.days_between} days later)
- Diagnosis: {pair.readmit_primary_diagnosis.description}
- Notes: {pair.readmit_clinical_notes}

Evaluate:
1. **Discharge Timing**: Was the patient clinically stable at discharge? Was LOS adequate?
2. **Discharge Planning**: Were appropriate follow-up, home services, and medications arranged?
3. **Medication Reconciliation**: Were medication changes appropriate and clearly communicated?
4. **Patient Education**: Was the patient/family educated on warning signs and when to return?
5. **Follow-up Gaps**: Did the patient have timely outpatient follow-up?

Respond with:
{{
  "dischargeAdequacy": "Adequate" | "Inadequate" | "Indeterminate",
  "preventabilityScore": <0-100>,
  "gaps": ["<list of identified gaps>"],
  "recommendations": ["<list of improvement recommendations>"]
}}"""


def build_readmission_recommendation_prompt(pair: ReadmissionPair, findings: list[ReadmissionFinding]) -> str:
    return f"""Based on the following readmission review findings for {pair.index_beneficiary_name} ({pair.id}), generate a prioritized action plan.

## Readmission Summary
- Index: DRG {pair.index_drg} (${format_amount(pair.index_billed_amount)}) -> Readmit: DRG {pair.readmit_drg} (${format_amount(pair.readmit_billed_amount)})
- Days Between: {pair.days_between}
- Same Facility: {yes_no(pair.same_facility)}
{_hrrp_line(pair, "HRRP Target")}

## Review Findings
{numbered_findings(findings)}

Generate:
1. **Payment Action**: Whether to bundle, deny the readmission, or pay separately
2. **Quality Referral**: Whether to refer for quality review or root cause analysis
3. **HRRP Impact**: Assessment of HRRP penalty implications
4. **Provider Outreach**: Recommended communication to the facility
5. **Systemic Patterns**: Whether this case suggests broader patterns requiring investigation"""
