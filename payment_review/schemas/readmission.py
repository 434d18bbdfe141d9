"""Readmission review entities and results."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .common import AdmissionType, DischargeStatus, EntityModel, Finding, ICD10Code, WireModel


class ReadmissionReviewStatus(str, Enum):
    PENDING = "Pending"
    CLINICALLY_RELATED = "Clinically Related"
    NOT_RELATED = "Not Related"
    PLANNED = "Planned"
    POTENTIALLY_PREVENTABLE = "Potentially Preventable"
    BUNDLE_CANDIDATE = "Bundle Candidate"


class ReadmissionFindingCategory(str, Enum):
    CLINICAL_RELATEDNESS = "CLINICAL_RELATEDNESS"
    DISCHARGE_ADEQUACY = "DISCHARGE_ADEQUACY"
    TIMING_PATTERN = "TIMING_PATTERN"
    DRG_BUNDLING = "DRG_BUNDLING"
    QUALITY_CONCERN = "QUALITY_CONCERN"
    DOCUMENTATION_GAP = "DOCUMENTATION_GAP"


class ClinicalRelatedness(str, Enum):
    DEFINITELY_RELATED = "Definitely Related"
    LIKELY_RELATED = "Likely Related"
    POSSIBLY_RELATED = "Possibly Related"
    NOT_RELATED = "Not Related"


class HRRPCondition(str, Enum):
    """Hospital Readmissions Reduction Program target conditions."""

    AMI = "AMI"
    CHF = "CHF"
    PNEUMONIA = "Pneumonia"
    COPD = "COPD"
    HIP_KNEE = "Hip/Knee"
    CABG = "CABG"


class ReadmissionFinding(Finding):
    category: ReadmissionFindingCategory


class ReadmissionPair(EntityModel):
    """An index admission and a subsequent readmission for one beneficiary."""

    index_claim_id: str
    index_provider_id: str
    index_provider_name: str = ""
    index_beneficiary_id: str
    index_beneficiary_name: str = ""
    index_admission_date: str
    index_discharge_date: str
    index_admission_type: AdmissionType
    index_discharge_status: DischargeStatus
    index_length_of_stay: int
    index_attending_physician_name: str = ""
    index_attending_specialty: str = ""
    index_drg: str = Field(alias="indexDRG")
    index_drg_description: str = Field(default="", alias="indexDRGDescription")
    index_billed_amount: float
    index_primary_diagnosis: ICD10Code
    index_secondary_diagnoses: list[ICD10Code] = Field(default_factory=list)
    index_clinical_notes: str = ""
    index_discharge_plan: str | None = None

    readmit_claim_id: str
    readmit_provider_id: str
    readmit_provider_name: str = ""
    readmit_admission_date: str
    readmit_discharge_date: str
    readmit_admission_type: AdmissionType
    readmit_discharge_status: DischargeStatus
    readmit_length_of_stay: int
    readmit_attending_physician_name: str = ""
    readmit_attending_specialty: str = ""
    readmit_drg: str = Field(alias="readmitDRG")
    readmit_drg_description: str = Field(default="", alias="readmitDRGDescription")
    readmit_billed_amount: float
    readmit_primary_diagnosis: ICD10Code
    readmit_secondary_diagnoses: list[ICD10Code] = Field(default_factory=list)
    readmit_clinical_notes: str = ""

    days_between: int
    same_facility: bool = False
    same_attending: bool = False
    combined_billed_amount: float = 0

    hrrp_target_condition: HRRPCondition | None = None
    is_planned_readmission: bool = False

    review_status: ReadmissionReviewStatus = ReadmissionReviewStatus.PENDING
    clinical_relatedness: ClinicalRelatedness | None = None
    preventability_score: int | None = None
    readmission_findings: list[ReadmissionFinding] | None = None
    agent_summary: str | None = None
    agent_confidence: int | None = None
    bundle_savings: float | None = None
    hrrp_penalty_risk: int | None = None
    reviewed_at: str | None = None
    risk_score: float = 0

    @property
    def same_diagnosis_category(self) -> bool:
        """Both principal diagnoses share the leading three ICD-10 characters."""
        return self.index_primary_diagnosis.category == self.readmit_primary_diagnosis.category


class ReadmissionReviewResult(WireModel):
    pair_id: str
    processed_at: str
    review_status: ReadmissionReviewStatus
    clinical_relatedness: ClinicalRelatedness
    preventability_score: int
    readmission_findings: list[ReadmissionFinding] = Field(default_factory=list)
    agent_summary: str
    agent_confidence: int
    bundle_savings: float
    hrrp_penalty_risk: int
    risk_score: int

    @property
    def entity_id(self) -> str:
        return self.pair_id

    def apply_to(self, pair: ReadmissionPair) -> ReadmissionPair:
        return pair.model_copy(
            update={
                "review_status": self.review_status,
                "clinical_relatedness": self.clinical_relatedness,
                "preventability_score": self.preventability_score,
                "readmission_findings": list(self.readmission_findings),
                "agent_summary": self.agent_summary,
                "agent_confidence": self.agent_confidence,
                "bundle_savings": self.bundle_savings,
                "hrrp_penalty_risk": self.hrrp_penalty_risk,
                "risk_score": self.risk_score,
                "reviewed_at": self.processed_at,
            }
        )
