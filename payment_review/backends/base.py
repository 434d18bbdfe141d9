"""Review backend contract, evaluation contexts and backend results.

A backend turns one evaluation context into a status, scores, findings and
a summary. The prompt text is built for every call so that a generative
backend can be dropped in; the rule-based backends ignore it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from payment_review import config
from payment_review.reference import DRGReferenceData
from payment_review.rules.engine import run_rules
from payment_review.rules.models import RuleRunResult, RuleWarning
from payment_review.rules.registry import RuleRegistry
from payment_review.schemas.claims import Claim
from payment_review.schemas.drg import DRGClaim, DRGFinding, DRGValidationStatus
from payment_review.schemas.med_necessity import (
    MedNecessityClaim,
    MedNecessityCriteria,
    MedNecessityFinding,
    MedNecessityStatus,
    RecommendedLevelOfCare,
)
from payment_review.schemas.outlier import OutlierFinding
from payment_review.schemas.readmission import (
    ClinicalRelatedness,
    ReadmissionFinding,
    ReadmissionPair,
    ReadmissionReviewStatus,
)

# Contexts


@dataclass(frozen=True)
class OutlierContext:
    """One provider's claims, the full population and the rule findings."""

    provider_id: str
    provider_name: str
    provider_claims: list[Claim]
    all_claims: list[Claim]
    findings: list[OutlierFinding]

    @property
    def total_billed(self) -> float:
        return sum(c.amount for c in self.provider_claims)


@dataclass(frozen=True)
class DRGContext:
    claim: DRGClaim
    reference: DRGReferenceData


@dataclass(frozen=True)
class MedNecessityContext:
    claim: MedNecessityClaim


@dataclass(frozen=True)
class ReadmissionContext:
    pair: ReadmissionPair


# Backend results


@dataclass
class OutlierBackendResult:
    risk_score: int
    summary: str


@dataclass
class DRGBackendResult:
    validation_status: DRGValidationStatus
    expected_drg: str
    expected_drg_description: str
    expected_drg_weight: float
    confidence: int
    findings: list[DRGFinding]
    summary: str
    warnings: list[RuleWarning] = field(default_factory=list)


@dataclass
class MedNecessityBackendResult:
    med_necessity_status: MedNecessityStatus
    recommended_level_of_care: RecommendedLevelOfCare
    criteria_assessment: MedNecessityCriteria
    confidence: int
    denial_risk: int
    estimated_denial_amount: float
    findings: list[MedNecessityFinding]
    summary: str
    warnings: list[RuleWarning] = field(default_factory=list)


@dataclass
class ReadmissionBackendResult:
    review_status: ReadmissionReviewStatus
    clinical_relatedness: ClinicalRelatedness
    preventability_score: int
    confidence: int
    bundle_savings: float
    hrrp_penalty_risk: int
    findings: list[ReadmissionFinding]
    summary: str
    warnings: list[RuleWarning] = field(default_factory=list)


ContextT = TypeVar("ContextT")
ResultT = TypeVar("ResultT")


class ReviewBackend(ABC, Generic[ContextT, ResultT]):
    """Evaluates one review context.

    Agents depend only on this interface, so a rule-based backend and a
    generative one are interchangeable.
    """

    @abstractmethod
    def evaluate(self, prompt: str, context: ContextT) -> ResultT:
        """Evaluate one context.

        Args:
            prompt: Rendered prompt text for the context
            context: Entity under review plus any cohort data

        Returns:
            Backend result for the vertical
        """


class RuleBasedBackend(ReviewBackend[ContextT, ResultT]):
    """Backend that derives its result from a rule registry."""

    def __init__(self, registry: RuleRegistry, strict: bool | None = None) -> None:
        """Initialize the backend.

        Args:
            registry: Rules to run for every entity
            strict: Record rule parse warnings. Defaults to
                ``PAYMENT_REVIEW_STRICT_RULES``.
        """
        self.registry = registry
        self.strict = config.STRICT_RULES if strict is None else strict

    def run_rules(self, *args: object) -> RuleRunResult:
        return run_rules(self.registry, *args, strict=self.strict)
