"""Provider outlier detection agent.

Runs the outlier rules for every provider against the full claims
population, scores each provider through the backend and rolls the
results up into a portfolio report.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from payment_review import config
from payment_review.agents.base import ReviewError, entity_id_of
from payment_review.backends.base import OutlierBackendResult, OutlierContext, ReviewBackend
from payment_review.backends.outlier import HIGH_RISK_THRESHOLD, RuleBasedOutlierBackend
from payment_review.prompts.outlier import build_outlier_analysis_prompt
from payment_review.rules.engine import run_rules
from payment_review.rules.registry import RuleRegistry
from payment_review.rules.ruleset import outlier_registry
from payment_review.schemas.claims import Claim
from payment_review.schemas.outlier import OutlierDetectionReport, ProviderOutlierResult
from payment_review.utils import format_amount, utc_timestamp

logger = logging.getLogger(__name__)


class OutlierDetectionAgent:
    """Provider-level statistical outlier detection."""

    name = "outlier-detection"

    def __init__(
        self,
        backend: ReviewBackend[OutlierContext, OutlierBackendResult] | None = None,
        registry: RuleRegistry | None = None,
        strict: bool | None = None,
        batch_delay_ms: int | None = None,
    ) -> None:
        self.backend = backend or RuleBasedOutlierBackend()
        self.registry = outlier_registry() if registry is None else registry
        self.strict = config.STRICT_RULES if strict is None else strict
        self.batch_delay_ms = config.BATCH_DELAY_MS if batch_delay_ms is None else batch_delay_ms

    @staticmethod
    def coerce_claims(claims: Sequence[Claim | Mapping[str, Any]]) -> list[Claim]:
        return [c if isinstance(c, Claim) else Claim.model_validate(c) for c in claims]

    def validate_claims(
        self,
        claims: Sequence[Claim | Mapping[str, Any]],
    ) -> tuple[list[Claim], list[ReviewError]]:
        """Validate each record on its own.

        Returns:
            The valid claims in input order, and one error per record that
            failed validation
        """
        valid = []
        failed = []
        for raw in claims:
            if isinstance(raw, Claim):
                valid.append(raw)
                continue
            try:
                valid.append(Claim.model_validate(raw))
            except ValidationError as exc:
                claim_id = entity_id_of(raw)
                logger.warning(f"[{self.name}] Claim {claim_id} failed validation: {exc.error_count()} error(s)")
                failed.append(ReviewError.from_exception(claim_id, exc))
        return valid, failed

    def analyze_provider(
        self,
        provider_id: str,
        claims: Sequence[Claim | Mapping[str, Any]],
    ) -> ProviderOutlierResult:
        """Analyze one provider against the full claims population.

        Args:
            provider_id: Provider to analyze
            claims: Every claim in the population, not only the provider's

        Returns:
            ProviderOutlierResult with findings in rule order
        """
        all_claims = self.coerce_claims(claims)
        provider_claims = [c for c in all_claims if c.provider_id == provider_id]
        provider_name = provider_claims[0].provider_name if provider_claims else provider_id

        run = run_rules(self.registry, provider_id, all_claims, strict=self.strict)
        for warning in run.warnings:
            logger.warning(f"[{self.name}] {provider_id}: rule {warning.rule_id} skipped: {warning.message}")

        context = OutlierContext(
            provider_id=provider_id,
            provider_name=provider_name,
            provider_claims=provider_claims,
            all_claims=all_claims,
            findings=list(run.findings),
        )
        result = self.backend.evaluate(build_outlier_analysis_prompt(context), context)

        return ProviderOutlierResult(
            provider_id=provider_id,
            provider_name=provider_name,
            claim_count=len(provider_claims),
            total_billed=context.total_billed,
            findings=context.findings,
            risk_score=result.risk_score,
            summary=result.summary,
        )

    def analyze_all(self, claims: Sequence[Claim | Mapping[str, Any]]) -> OutlierDetectionReport:
        """Analyze every provider and build the portfolio report.

        Provider results are sorted by risk score, highest first; providers
        with equal scores keep first-seen order. Claim records that fail
        validation and providers whose analysis raises are reported in
        ``failed``; the rest of the portfolio is still analyzed.
        """
        all_claims, failed = self.validate_claims(claims)
        provider_ids = list(dict.fromkeys(c.provider_id for c in all_claims))
        logger.info(f"[{self.name}] Analyzing {len(provider_ids)} providers across {len(all_claims)} claims")

        results = []
        for index, provider_id in enumerate(provider_ids):
            if index and self.batch_delay_ms > 0:
                time.sleep(self.batch_delay_ms / 1000)
            try:
                results.append(self.analyze_provider(provider_id, all_claims))
            except Exception as exc:
                logger.warning(f"[{self.name}] Analysis failed for {provider_id}: {type(exc).__name__}: {exc}")
                failed.append(ReviewError.from_exception(provider_id, exc))

        results.sort(key=lambda r: r.risk_score, reverse=True)

        flagged = sum(1 for r in results if r.findings)
        critical = sum(1 for r in results if r.risk_score >= HIGH_RISK_THRESHOLD)
        exposure = sum(r.total_exposure for r in results)
        logger.info(f"[{self.name}] Analysis complete: {flagged} flagged, {critical} critical, {len(failed)} failed")

        return OutlierDetectionReport(
            generated_at=utc_timestamp(),
            total_claims=len(all_claims),
            total_providers=len(results),
            flagged_providers=flagged,
            critical_providers=critical,
            total_estimated_exposure=exposure,
            provider_results=results,
            executive_summary=build_executive_summary(results, len(all_claims), flagged, critical, exposure),
            failed=[error.as_record() for error in failed],
        )


def build_executive_summary(
    results: list[ProviderOutlierResult],
    claim_count: int,
    flagged: int,
    critical: int,
    exposure: float,
) -> str:
    """Portfolio summary over results already sorted by risk."""
    if flagged == 0:
        return (
            f"Outlier detection complete across {len(results)} providers and {claim_count} claims. "
            "No statistically significant anomalies detected. Portfolio risk posture is within "
            "expected parameters."
        )

    rule_counts = Counter(f.rule_id for r in results for f in r.findings)
    dominant_rule = rule_counts.most_common(1)[0][0].replace("_", " ")
    top_provider = next(r for r in results if r.findings)
    providers = "provider" if len(results) == 1 else "providers"

    return (
        f"Outlier detection identified {flagged} of {len(results)} {providers} with anomalous "
        f"billing patterns ({critical} critical). Estimated financial exposure: "
        f"${format_amount(exposure)}. Most prevalent finding: {dominant_rule}. "
        f"Highest-risk provider: {top_provider.provider_name} (risk score {top_provider.risk_score}/100). "
        "Immediate investigation recommended for all critical-risk providers."
    )
