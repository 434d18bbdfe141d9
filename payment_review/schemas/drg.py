"""DRG clinical validation entities and results."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .common import AdmissionType, DischargeStatus, EntityModel, Finding, ICD10Code, WireModel


class DRGValidationStatus(str, Enum):
    PENDING = "Pending"
    VALIDATED = "Validated"
    QUERIED = "Queried"
    UPCODED = "Upcoded"
    DOWNCODED = "Downcoded"


class DRGFindingCategory(str, Enum):
    DRG_ASSIGNMENT = "DRG_ASSIGNMENT"
    CC_MCC_VALIDATION = "CC_MCC_VALIDATION"
    CLINICAL_CRITERIA = "CLINICAL_CRITERIA"
    CODING_SEQUENCE = "CODING_SEQUENCE"
    UPCODING = "UPCODING"
    DOWNCODING = "DOWNCODING"


class DRGFinding(Finding):
    category: DRGFindingCategory


class DRGClaim(EntityModel):
    """An inpatient episode with its assigned MS-DRG."""

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

    assigned_drg: str = Field(alias="assignedDRG")
    assigned_drg_description: str = Field(default="", alias="assignedDRGDescription")
    assigned_drg_weight: float = Field(alias="assignedDRGWeight")
    ms_drg_base_rate: float = Field(default=0, alias="msDRGBaseRate")
    billed_amount: float

    primary_diagnosis: ICD10Code
    secondary_diagnoses: list[ICD10Code] = Field(default_factory=list)
    principal_procedure: str | None = None
    clinical_notes: str = ""

    expected_drg: str | None = Field(default=None, alias="expectedDRG")
    expected_drg_description: str | None = Field(default=None, alias="expectedDRGDescription")
    expected_drg_weight: float | None = Field(default=None, alias="expectedDRGWeight")
    expected_reimbursement: float | None = None
    financial_variance: float | None = None

    validation_status: DRGValidationStatus = DRGValidationStatus.PENDING
    agent_findings: list[DRGFinding] | None = None
    agent_summary: str | None = None
    agent_confidence: int | None = None
    reviewed_at: str | None = None
    risk_score: float = 0

    @property
    def diagnoses(self) -> list[ICD10Code]:
        """Principal diagnosis followed by secondaries."""
        return [self.primary_diagnosis, *self.secondary_diagnoses]


class DRGReviewResult(WireModel):
    claim_id: str
    processed_at: str
    validation_status: DRGValidationStatus
    expected_drg: str = Field(alias="expectedDRG")
    expected_drg_description: str = Field(alias="expectedDRGDescription")
    expected_drg_weight: float = Field(alias="expectedDRGWeight")
    expected_reimbursement: int
    financial_variance: float
    agent_findings: list[DRGFinding] = Field(default_factory=list)
    agent_summary: str
    agent_confidence: int
    risk_score: int

    @property
    def entity_id(self) -> str:
        return self.claim_id

    def apply_to(self, claim: DRGClaim) -> DRGClaim:
        """Return ``claim`` with every review field populated from this result."""
        return claim.model_copy(
            update={
                "validation_status": self.validation_status,
                "expected_drg": self.expected_drg,
                "expected_drg_description": self.expected_drg_description,
                "expected_drg_weight": self.expected_drg_weight,
                "expected_reimbursement": self.expected_reimbursement,
                "financial_variance": self.financial_variance,
                "agent_findings": list(self.agent_findings),
                "agent_summary": self.agent_summary,
                "agent_confidence": self.agent_confidence,
                "risk_score": self.risk_score,
                "reviewed_at": self.processed_at,
            }
        )
