"""Medical necessity review agent."""

from __future__ import annotations

from payment_review.backends.base import MedNecessityBackendResult, MedNecessityContext, ReviewBackend
from payment_review.backends.med_necessity import RuleBasedMedNecessityBackend
from payment_review.prompts.med_necessity import build_med_necessity_review_prompt
from payment_review.rules.models import RuleWarning
from payment_review.rules.scoring import SCORE_MAX, severity_score
from payment_review.schemas.med_necessity import MedNecessityClaim, MedNecessityReviewResult
from payment_review.utils import round_half_up, utc_timestamp

from .base import ReviewAgent

FINDINGS_WEIGHT = 0.4
DENIAL_RISK_WEIGHT = 0.6


class MedNecessityAgent(ReviewAgent[MedNecessityClaim, MedNecessityReviewResult]):
    """Reviews inpatient admissions for medical necessity."""

    entity_model = MedNecessityClaim
    name = "med-necessity"

    def __init__(
        self,
        backend: ReviewBackend[MedNecessityContext, MedNecessityBackendResult] | None = None,
        batch_delay_ms: int | None = None,
    ) -> None:
        super().__init__(batch_delay_ms)
        self.backend = backend or RuleBasedMedNecessityBackend()

    def assess(self, claim: MedNecessityClaim) -> tuple[MedNecessityReviewResult, list[RuleWarning]]:
        context = MedNecessityContext(claim=claim)
        result = self.backend.evaluate(build_med_necessity_review_prompt(context), context)

        findings_score = severity_score(result.findings)
        risk_score = min(
            SCORE_MAX,
            round_half_up(findings_score * FINDINGS_WEIGHT + result.denial_risk * DENIAL_RISK_WEIGHT),
        )

        review = MedNecessityReviewResult(
            claim_id=claim.id,
            processed_at=utc_timestamp(),
            med_necessity_status=result.med_necessity_status,
            recommended_level_of_care=result.recommended_level_of_care,
            criteria_assessment=result.criteria_assessment,
            med_necessity_findings=result.findings,
            agent_summary=result.summary,
            agent_confidence=result.confidence,
            denial_risk=result.denial_risk,
            estimated_denial_amount=result.estimated_denial_amount,
            risk_score=risk_score,
        )
        return review, list(result.warnings)
