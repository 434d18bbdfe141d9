"""Review agents, one per review vertical."""

from .base import (
    OutcomeStatus,
    ReviewAgent,
    ReviewError,
    ReviewOutcome,
    entity_id_of,
    reviewed_results,
)
from .drg import DRGValidationAgent
from .med_necessity import MedNecessityAgent
from .outlier import OutlierDetectionAgent, build_executive_summary
from .readmission import ReadmissionAgent

__all__ = [
    "DRGValidationAgent",
    "MedNecessityAgent",
    "OutcomeStatus",
    "OutlierDetectionAgent",
    "ReadmissionAgent",
    "ReviewAgent",
    "ReviewError",
    "ReviewOutcome",
    "build_executive_summary",
    "entity_id_of",
    "reviewed_results",
]
