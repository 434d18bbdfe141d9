"""Medical necessity review entities and results."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .common import AdmissionType, DischargeStatus, EntityModel, Finding, ICD10Code, WireModel


class MedNecessityStatus(str, Enum):
    PENDING = "Pending"
    MEETS_CRITERIA = "Meets Criteria"
    DOES_NOT_MEET = "Does Not Meet"
    OBSERVATION = "Observation"
    QUERIED = "Queried"


class RecommendedLevelOfCare(str, Enum):
    INPATIENT = "Inpatient"
    OBSERVATION = "Observation"
    OUTPATIENT = "Outpatient"
    SKILLED_NURSING = "Skilled Nursing"
    HOME = "Home"


class MedNecessityFindingCategory(str, Enum):
    SEVERITY_OF_ILLNESS = "SEVERITY_OF_ILLNESS"
    INTENSITY_OF_SERVICE = "INTENSITY_OF_SERVICE"
    ADMISSION_CRITERIA = "ADMISSION_CRITERIA"
    LEVEL_OF_CARE = "LEVEL_OF_CARE"
    CONTINUED_STAY = "CONTINUED_STAY"
    DOCUMENTATION_GAP = "DOCUMENTATION_GAP"


class CriterionResult(str, Enum):
    MET = "Met"
    NOT_MET = "Not Met"
    PARTIALLY_MET = "Partially Met"


class ContinuedStayResult(str, Enum):
    JUSTIFIED = "Justified"
    NOT_JUSTIFIED = "Not Justified"
    INDETERMINATE = "Indeterminate"


class MedNecessityFinding(Finding):
    category: MedNecessityFindingCategory


class MedNecessityCriteria(WireModel):
    severity_of_illness: CriterionResult
    intensity_of_service: CriterionResult
    admission_criteria: CriterionResult
    continued_stay: ContinuedStayResult


class AdmissionVitals(WireModel):
    blood_pressure: str
    heart_rate: float
    temperature: float
    respiratory_rate: float
    o2_saturation: float = Field(alias="o2Saturation")


class LabValue(WireModel):
    name: str
    value: str
    unit: str = ""
    abnormal: bool = False


class MedNecessityClaim(EntityModel):
    """An inpatient admission with the clinical signal used to judge necessity."""

    provider_id: str
    provider_name: str = ""
    beneficiary_id: str
    beneficiary_name: str = ""

    admission_date: str
    discharge_date: str
    admission_type: AdmissionType
    discharge_status: DischargeStatus
    length_of_stay: int
    attending_physician_npi: str = Field(default="", alias="attendingPhysicianNPI")
    attending_physician_name: str = ""
    attending_specialty: str = ""

    assigned_drg: str = Field(default="", alias="assignedDRG")
    assigned_drg_description: str = Field(default="", alias="assignedDRGDescription")
    billed_amount: float

    primary_diagnosis: ICD10Code
    secondary_diagnoses: list[ICD10Code] = Field(default_factory=list)
    principal_procedure: str | None = None
    clinical_notes: str = ""

    admission_vitals: AdmissionVitals
    admission_lab_values: list[LabValue] = Field(default_factory=list)
    treatments_provided: list[str] = Field(default_factory=list)
    iv_medications_required: bool = False
    icu_admission: bool = False
    surgical_procedure: bool = False
    telemetry_required: bool = False
    oxygen_required: bool = False
    isolation_required: bool = False

    med_necessity_status: MedNecessityStatus = MedNecessityStatus.PENDING
    recommended_level_of_care: RecommendedLevelOfCare | None = None
    criteria_assessment: MedNecessityCriteria | None = None
    med_necessity_findings: list[MedNecessityFinding] | None = None
    agent_summary: str | None = None
    agent_confidence: int | None = None
    denial_risk: int | None = None
    estimated_denial_amount: float | None = None
    reviewed_at: str | None = None
    risk_score: float = 0

    @property
    def abnormal_lab_count(self) -> int:
        return sum(1 for lab in self.admission_lab_values if lab.abnormal)

    @property
    def resource_flags(self) -> dict[str, bool]:
        return {
            "ivMedicationsRequired": self.iv_medications_required,
            "icuAdmission": self.icu_admission,
            "surgicalProcedure": self.surgical_procedure,
            "telemetryRequired": self.telemetry_required,
            "oxygenRequired": self.oxygen_required,
            "isolationRequired": self.isolation_required,
        }


class MedNecessityReviewResult(WireModel):
    claim_id: str
    processed_at: str
    med_necessity_status: MedNecessityStatus
    recommended_level_of_care: RecommendedLevelOfCare
    criteria_assessment: MedNecessityCriteria
    med_necessity_findings: list[MedNecessityFinding] = Field(default_factory=list)
    agent_summary: str
    agent_confidence: int
    denial_risk: int
    estimated_denial_amount: float
    risk_score: int

    @property
    def entity_id(self) -> str:
        return self.claim_id

    def apply_to(self, claim: MedNecessityClaim) -> MedNecessityClaim:
        return claim.model_copy(
            update={
                "med_necessity_status": self.med_necessity_status,
                "recommended_level_of_care": self.recommended_level_of_care,
                "criteria_assessment": self.criteria_assessment,
                "med_necessity_findings": list(self.med_necessity_findings),
                "agent_summary": self.agent_summary,
                "agent_confidence": self.agent_confidence,
                "denial_risk": self.denial_risk,
                "estimated_denial_amount": self.estimated_denial_amount,
                "risk_score": self.risk_score,
                "reviewed_at": self.processed_at,
            }
        )
