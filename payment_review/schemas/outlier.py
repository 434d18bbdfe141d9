"""Outlier detection findings and reports."""

from __future__ import annotations

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .common import RecordFailure, Severity, WireModel


class OutlierFinding(WireModel):
    """A statistical anomaly for one provider.

    ``estimated_impact`` is the positive dollar exposure attributed to the
    anomaly.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    rule_id: str
    rule_name: str
    severity: Severity
    description: str
    recommendation: str
    affected_claim_ids: list[str] = Field(default_factory=list)
    estimated_impact: float = 0
    stat_detail: str = ""


class ProviderOutlierResult(WireModel):
    """Outlier analysis for one provider.

    ``findings`` keep rule-registry order; they are not re-sorted by severity.
    """

    provider_id: str
    provider_name: str
    claim_count: int
    total_billed: float
    findings: list[OutlierFinding] = Field(default_factory=list)
    risk_score: int = 0
    summary: str = ""

    @property
    def total_exposure(self) -> float:
        return sum(f.estimated_impact for f in self.findings)


class OutlierDetectionReport(WireModel):
    """Portfolio-wide outlier analysis.

    ``failed`` lists claim records that failed validation and providers whose
    analysis raised; both are left out of the totals and provider results.
    """

    generated_at: str
    total_claims: int
    total_providers: int
    flagged_providers: int
    critical_providers: int
    total_estimated_exposure: float
    provider_results: list[ProviderOutlierResult] = Field(default_factory=list)
    executive_summary: str = ""
    failed: list[RecordFailure] = Field(default_factory=list)
