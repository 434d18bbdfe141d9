"""Readmission review agent."""

from __future__ import annotations

from payment_review.backends.base import ReadmissionBackendResult, ReadmissionContext, ReviewBackend
from payment_review.backends.readmission import RuleBasedReadmissionBackend
from payment_review.prompts.readmission import build_readmission_review_prompt
from payment_review.rules.models import RuleWarning
from payment_review.rules.scoring import SCORE_MAX, severity_score
from payment_review.schemas.readmission import ReadmissionPair, ReadmissionReviewResult
from payment_review.utils import round_half_up, utc_timestamp

from .base import ReviewAgent

FINDINGS_WEIGHT = 0.3
PREVENTABILITY_WEIGHT = 0.4
HRRP_RISK_WEIGHT = 0.3


class ReadmissionAgent(ReviewAgent[ReadmissionPair, ReadmissionReviewResult]):
    """Reviews index/readmission pairs for relatedness, preventability and bundling."""

    entity_model = ReadmissionPair
    name = "readmission"

    def __init__(
        self,
        backend: ReviewBackend[ReadmissionContext, ReadmissionBackendResult] | None = None,
        batch_delay_ms: int | None = None,
    ) -> None:
        super().__init__(batch_delay_ms)
        self.backend = backend or RuleBasedReadmissionBackend()

    def assess(self, pair: ReadmissionPair) -> tuple[ReadmissionReviewResult, list[RuleWarning]]:
        context = ReadmissionContext(pair=pair)
        result = self.backend.evaluate(build_readmission_review_prompt(context), context)

        findings_score = severity_score(result.findings)
        risk_score = min(
            SCORE_MAX,
            round_half_up(
                findings_score * FINDINGS_WEIGHT
                + result.preventability_score * PREVENTABILITY_WEIGHT
                + result.hrrp_penalty_risk * HRRP_RISK_WEIGHT
            ),
        )

        review = ReadmissionReviewResult(
            pair_id=pair.id,
            processed_at=utc_timestamp(),
            review_status=result.review_status,
            clinical_relatedness=result.clinical_relatedness,
            preventability_score=result.preventability_score,
            readmission_findings=result.findings,
            agent_summary=result.summary,
            agent_confidence=result.confidence,
            bundle_savings=result.bundle_savings,
            hrrp_penalty_risk=result.hrrp_penalty_risk,
            risk_score=risk_score,
        )
        return review, list(result.warnings)
