"""Generic claim model used by outlier detection and claim audit."""

from __future__ import annotations

from enum import Enum

from .common import EntityModel


class ClaimStatus(str, Enum):
    """Claim lifecycle status. Only Pending claims are eligible for review."""

    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"
    FLAGGED = "Flagged"


class Claim(EntityModel):
    provider_id: str
    provider_name: str = ""
    beneficiary_id: str
    beneficiary_name: str = ""
    service_date: str
    procedure_code: str
    amount: float
    status: ClaimStatus = ClaimStatus.PENDING
    risk_score: float = 0
    ai_reasoning: str | None = None
    flagged_date: str | None = None
