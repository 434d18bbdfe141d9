"""Rule-based DRG validation backend."""

from __future__ import annotations

from payment_review.rules.registry import RuleRegistry
from payment_review.rules.ruleset import drg_registry
from payment_review.rules.scoring import confidence_score
from payment_review.schemas.common import Severity, count_severity, has_category
from payment_review.schemas.drg import DRGClaim, DRGFinding, DRGFindingCategory, DRGValidationStatus
from payment_review.utils import format_amount, pluralize

from .base import DRGBackendResult, DRGContext, RuleBasedBackend

SUMMARY_DIRECTION = {
    DRGValidationStatus.UPCODED: "potential overbilling requiring downward DRG adjustment",
    DRGValidationStatus.DOWNCODED: (
        "missed revenue opportunity - physician query recommended for potential DRG upgrade"
    ),
}
DEFAULT_DIRECTION = "coding discrepancies requiring clinical review"


def determine_validation_status(findings: list[DRGFinding]) -> DRGValidationStatus:
    """Validation status from the finding categories.

    Upcoding without downcoding is Upcoded and the reverse is Downcoded.
    Any other non-empty finding set is Queried.
    """
    if not findings:
        return DRGValidationStatus.VALIDATED

    upcoding = has_category(findings, DRGFindingCategory.UPCODING)
    downcoding = has_category(findings, DRGFindingCategory.DOWNCODING)
    if upcoding and not downcoding:
        return DRGValidationStatus.UPCODED
    if downcoding and not upcoding:
        return DRGValidationStatus.DOWNCODED
    return DRGValidationStatus.QUERIED


class RuleBasedDRGBackend(RuleBasedBackend[DRGContext, DRGBackendResult]):
    """Validates a DRG assignment with the clinical DRG rules."""

    def __init__(self, registry: RuleRegistry | None = None, strict: bool | None = None) -> None:
        super().__init__(drg_registry() if registry is None else registry, strict)

    def evaluate(self, prompt: str, context: DRGContext) -> DRGBackendResult:
        claim = context.claim
        run = self.run_rules(claim)
        findings = run.findings
        status = determine_validation_status(findings)

        expected = context.reference.expected_for(claim.id)
        if expected is not None:
            expected_drg, expected_description = expected.drg, expected.description
        else:
            expected_drg, expected_description = claim.assigned_drg, claim.assigned_drg_description

        expected_weight = context.reference.weight_for(expected_drg)
        if expected_weight is None:
            expected_weight = claim.assigned_drg_weight

        return DRGBackendResult(
            validation_status=status,
            expected_drg=expected_drg,
            expected_drg_description=expected_description,
            expected_drg_weight=expected_weight,
            confidence=confidence_score(len(findings), clean=95, start=90, step=7, floor=60),
            findings=findings,
            summary=self._build_summary(claim, findings, status),
            warnings=run.warnings,
        )

    def _build_summary(
        self, claim: DRGClaim, findings: list[DRGFinding], status: DRGValidationStatus
    ) -> str:
        if not findings:
            return (
                f"DRG {claim.assigned_drg} ({claim.assigned_drg_description}) is clinically "
                "supported by the documentation. No validation issues identified."
            )

        critical = count_severity(findings, Severity.CRITICAL)
        total_impact = sum(abs(f.financial_impact or 0) for f in findings)
        direction = SUMMARY_DIRECTION.get(status, DEFAULT_DIRECTION)

        return (
            f"{pluralize(len(findings), 'validation finding')} identified"
            f"{f' ({critical} critical)' if critical else ''}. "
            f"Estimated financial variance: ${format_amount(total_impact)}. "
            f"Analysis indicates {direction}."
        )
