"""Pydantic models for review entities, findings and results."""

from .claims import Claim, ClaimStatus
from .common import (
    AdmissionType,
    DischargeStatus,
    Finding,
    ICD10Code,
    RecordFailure,
    Severity,
    WireModel,
)
from .drg import DRGClaim, DRGFinding, DRGFindingCategory, DRGReviewResult, DRGValidationStatus
from .med_necessity import (
    AdmissionVitals,
    ContinuedStayResult,
    CriterionResult,
    LabValue,
    MedNecessityClaim,
    MedNecessityCriteria,
    MedNecessityFinding,
    MedNecessityFindingCategory,
    MedNecessityReviewResult,
    MedNecessityStatus,
    RecommendedLevelOfCare,
)
from .outlier import OutlierDetectionReport, OutlierFinding, ProviderOutlierResult
from .readmission import (
    ClinicalRelatedness,
    HRRPCondition,
    ReadmissionFinding,
    ReadmissionFindingCategory,
    ReadmissionPair,
    ReadmissionReviewResult,
    ReadmissionReviewStatus,
)

__all__ = [
    "AdmissionType",
    "AdmissionVitals",
    "Claim",
    "ClaimStatus",
    "ClinicalRelatedness",
    "ContinuedStayResult",
    "CriterionResult",
    "DRGClaim",
    "DRGFinding",
    "DRGFindingCategory",
    "DRGReviewResult",
    "DRGValidationStatus",
    "DischargeStatus",
    "Finding",
    "HRRPCondition",
    "ICD10Code",
    "LabValue",
    "MedNecessityClaim",
    "MedNecessityCriteria",
    "MedNecessityFinding",
    "MedNecessityFindingCategory",
    "MedNecessityReviewResult",
    "MedNecessityStatus",
    "OutlierDetectionReport",
    "OutlierFinding",
    "ProviderOutlierResult",
    "ReadmissionFinding",
    "ReadmissionFindingCategory",
    "ReadmissionPair",
    "ReadmissionReviewResult",
    "ReadmissionReviewStatus",
    "RecordFailure",
    "RecommendedLevelOfCare",
    "Severity",
    "WireModel",
]
