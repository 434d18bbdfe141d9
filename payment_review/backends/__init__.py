"""Review backends: the abstract contract and the rule-based implementations."""

from .base import (
    DRGBackendResult,
    DRGContext,
    MedNecessityBackendResult,
    MedNecessityContext,
    OutlierBackendResult,
    OutlierContext,
    ReadmissionBackendResult,
    ReadmissionContext,
    ReviewBackend,
    RuleBasedBackend,
)
from .drg import RuleBasedDRGBackend
from .med_necessity import RuleBasedMedNecessityBackend
from .outlier import RuleBasedOutlierBackend
from .readmission import RuleBasedReadmissionBackend

__all__ = [
    "ReviewBackend",
    "RuleBasedBackend",
    "OutlierContext",
    "OutlierBackendResult",
    "RuleBasedOutlierBackend",
    "DRGContext",
    "DRGBackendResult",
    "RuleBasedDRGBackend",
    "MedNecessityContext",
    "MedNecessityBackendResult",
    "RuleBasedMedNecessityBackend",
    "ReadmissionContext",
    "ReadmissionBackendResult",
    "RuleBasedReadmissionBackend",
]
