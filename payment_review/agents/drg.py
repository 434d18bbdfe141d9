"""DRG clinical validation agent."""

from __future__ import annotations

from payment_review.backends.base import DRGBackendResult, DRGContext, ReviewBackend
from payment_review.backends.drg import RuleBasedDRGBackend
from payment_review.prompts.drg import build_drg_validation_prompt
from payment_review.reference import DRGReferenceData, load_drg_reference
from payment_review.rules.models import RuleWarning
from payment_review.rules.scoring import SCORE_MAX, severity_score
from payment_review.schemas.drg import DRGClaim, DRGReviewResult
from payment_review.utils import round_half_up, utc_timestamp

from .base import ReviewAgent

# Variance contributes one point per $800, up to this cap
VARIANCE_SCORE_CAP = 50
VARIANCE_DOLLARS_PER_POINT = 800


class DRGValidationAgent(ReviewAgent[DRGClaim, DRGReviewResult]):
    """Validates MS-DRG assignments and prices the expected DRG."""

    entity_model = DRGClaim
    name = "drg-validation"

    def __init__(
        self,
        backend: ReviewBackend[DRGContext, DRGBackendResult] | None = None,
        reference: DRGReferenceData | None = None,
        batch_delay_ms: int | None = None,
    ) -> None:
        super().__init__(batch_delay_ms)
        self.backend = backend or RuleBasedDRGBackend()
        self.reference = reference or load_drg_reference()

    def assess(self, claim: DRGClaim) -> tuple[DRGReviewResult, list[RuleWarning]]:
        context = DRGContext(claim=claim, reference=self.reference)
        result = self.backend.evaluate(build_drg_validation_prompt(context), context)

        expected_reimbursement = round_half_up(result.expected_drg_weight * self.reference.base_rate)
        financial_variance = expected_reimbursement - claim.billed_amount

        variance_score = min(
            VARIANCE_SCORE_CAP,
            round_half_up(abs(financial_variance) / VARIANCE_DOLLARS_PER_POINT),
        )
        risk_score = min(SCORE_MAX, severity_score(result.findings) + variance_score)

        review = DRGReviewResult(
            claim_id=claim.id,
            processed_at=utc_timestamp(),
            validation_status=result.validation_status,
            expected_drg=result.expected_drg,
            expected_drg_description=result.expected_drg_description,
            expected_drg_weight=result.expected_drg_weight,
            expected_reimbursement=expected_reimbursement,
            financial_variance=financial_variance,
            agent_findings=result.findings,
            agent_summary=result.summary,
            agent_confidence=result.confidence,
            risk_score=risk_score,
        )
        return review, list(result.warnings)
