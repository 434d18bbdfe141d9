"""Rule-based provider outlier backend."""

from __future__ import annotations

from payment_review.rules.scoring import OUTLIER_SEVERITY_WEIGHTS, clamp_score, severity_score
from payment_review.schemas.common import Severity, count_severity
from payment_review.schemas.outlier import OutlierFinding
from payment_review.utils import format_amount, pluralize, round_half_up

from .base import OutlierBackendResult, OutlierContext, ReviewBackend

# Share of the risk score driven by exposure relative to billed volume
EXPOSURE_SCORE_CAP = 40

HIGH_RISK_THRESHOLD = 70
MODERATE_RISK_THRESHOLD = 40


def risk_label(risk_score: int) -> str:
    if risk_score >= HIGH_RISK_THRESHOLD:
        return "HIGH RISK"
    if risk_score >= MODERATE_RISK_THRESHOLD:
        return "MODERATE RISK"
    return "LOW RISK"


class RuleBasedOutlierBackend(ReviewBackend[OutlierContext, OutlierBackendResult]):
    """Scores a provider from the outlier findings already in the context."""

    def evaluate(self, prompt: str, context: OutlierContext) -> OutlierBackendResult:
        findings = context.findings
        total_billed = context.total_billed
        total_exposure = sum(f.estimated_impact for f in findings)

        exposure_ratio = total_exposure / total_billed if total_billed > 0 else 0
        exposure_score = min(EXPOSURE_SCORE_CAP, round_half_up(exposure_ratio * EXPOSURE_SCORE_CAP))
        risk_score = int(clamp_score(severity_score(findings, OUTLIER_SEVERITY_WEIGHTS) + exposure_score))

        return OutlierBackendResult(
            risk_score=risk_score,
            summary=self._build_summary(context, risk_score),
        )

    def _build_summary(self, context: OutlierContext, risk_score: int) -> str:
        findings = context.findings
        claim_count = len(context.provider_claims)

        if not findings:
            return (
                f"{context.provider_name} - No statistical outliers detected across {claim_count} "
                f"claims totaling ${format_amount(context.total_billed)}. Billing patterns fall "
                "within expected parameters."
            )

        critical = count_severity(findings, Severity.CRITICAL)
        high = count_severity(findings, Severity.HIGH)
        breakdown = f" ({critical} critical, {high} high)" if critical else ""
        exposure = sum(f.estimated_impact for f in findings)

        return (
            f"[{risk_label(risk_score)}] {context.provider_name}: "
            f"{pluralize(len(findings), 'outlier finding')} detected{breakdown}. "
            f"Primary concern: {_top_finding(findings).rule_name}. Estimated financial exposure: "
            f"${format_amount(exposure)} across {claim_count} claims."
        )


def _top_finding(findings: list[OutlierFinding]) -> OutlierFinding:
    """First finding with the highest severity weight."""
    return max(findings, key=lambda f: OUTLIER_SEVERITY_WEIGHTS[f.severity.value])
