"""Generic claim audit.

Finalizes Pending claims once their risk score is known: high-risk claims
are flagged for investigation, the rest are approved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from payment_review.agents.base import ReviewError, entity_id_of
from payment_review.schemas.claims import Claim, ClaimStatus

logger = logging.getLogger(__name__)

FLAG_THRESHOLD = 50

FLAGGED_REASONING = "AI Analysis: Anomalous billing pattern detected matching known fraud vectors."
APPROVED_REASONING = "AI Analysis: Claim falls within normal variance parameters."


def audit_claim(claim: Claim) -> Claim:
    """Flag or approve one Pending claim. Other statuses pass through."""
    if claim.status != ClaimStatus.PENDING:
        return claim

    if claim.risk_score > FLAG_THRESHOLD:
        return claim.model_copy(
            update={
                "status": ClaimStatus.FLAGGED,
                "ai_reasoning": claim.ai_reasoning or FLAGGED_REASONING,
            }
        )
    return claim.model_copy(
        update={
            "status": ClaimStatus.APPROVED,
            "ai_reasoning": APPROVED_REASONING,
        }
    )


def audit_claims(
    claims: Sequence[Claim | Mapping[str, Any]],
    claim_ids: Iterable[str],
) -> tuple[list[Claim | Mapping[str, Any]], list[Claim], list[ReviewError]]:
    """Audit the claims whose ids are in ``claim_ids``.

    Only requested records are validated. Records that were not requested
    pass through unchanged, as do requested records that fail validation.

    Args:
        claims: Full claims collection
        claim_ids: Ids to audit; unknown ids are ignored

    Returns:
        The full collection with audited claims replaced, every requested
        claim after audit in collection order, and one error per requested
        record that failed validation
    """
    wanted = set(claim_ids)
    full: list[Claim | Mapping[str, Any]] = []
    updated = []
    failed = []
    for raw in claims:
        claim_id = entity_id_of(raw)
        if claim_id not in wanted:
            full.append(raw)
            continue
        try:
            claim = raw if isinstance(raw, Claim) else Claim.model_validate(raw)
        except ValidationError as exc:
            logger.warning(f"Claim {claim_id} failed validation: {exc.error_count()} error(s)")
            failed.append(ReviewError.from_exception(claim_id, exc))
            full.append(raw)
            continue
        claim = audit_claim(claim)
        updated.append(claim)
        full.append(claim)

    flagged = sum(1 for c in updated if c.status == ClaimStatus.FLAGGED)
    logger.info(f"Audited {len(updated)} claims, {flagged} flagged, {len(failed)} failed")
    return full, updated, failed
