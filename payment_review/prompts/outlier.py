"""Prompt builders for provider outlier analysis."""

from __future__ import annotations

from collections import Counter

from payment_review.backends.base import OutlierContext
from payment_review.schemas.claims import Claim
from payment_review.schemas.common import Severity
from payment_review.schemas.outlier import ProviderOutlierResult
from payment_review.utils import format_amount, to_fixed

TOP_PROCEDURE_COUNT = 5
PORTFOLIO_PROVIDER_LIMIT = 10


def _average(total: float, count: int) -> float:
    return total / count if count else 0


def build_outlier_analysis_prompt(context: OutlierContext) -> str:
    """Risk-assessment prompt for one provider's billing profile and findings."""
    claims = context.provider_claims
    total_billed = context.total_billed
    portfolio_total = sum(c.amount for c in context.all_claims)

    procedure_counts = Counter(c.procedure_code for c in claims)
    top_procedures = ", ".join(
        f"{code}: {count} claims" for code, count in procedure_counts.most_common(TOP_PROCEDURE_COUNT)
    )

    findings_summary = "\n".join(
        f"{i}. [{f.severity.value}] {f.rule_name}: {f.description} "
        f"(Estimated exposure: ${format_amount(f.estimated_impact)})"
        for i, f in enumerate(context.findings, start=1)
    )

    return f"""You are a senior healthcare fraud, waste, and abuse (FWA) analyst specializing in statistical outlier detection and claims pattern analysis.

Review the following provider billing profile and statistical findings, then produce a comprehensive risk assessment.

## Provider Profile
- Provider: {context.provider_name}
- Total Claims: {len(claims)}
- Total Billed: ${format_amount(total_billed)}
- Average Claim Amount: ${to_fixed(_average(total_billed, len(claims)), 2)} (all-provider avg: ${to_fixed(_average(portfolio_total, len(context.all_claims)), 2)})
- Top Procedure Codes: {top_procedures}

## Statistical Outlier Findings
{findings_summary or "No statistical outliers detected."}

## Analysis Tasks
1. **Risk Assessment**: Based on the findings, classify the overall provider risk as Critical / High / Medium / Low.
2. **Pattern Analysis**: Are the findings consistent with a specific fraud typology (upcoding, phantom billing, kickbacks, unnecessary services)?
3. **Priority Actions**: What are the top 3 immediate investigation steps?
4. **Estimated Financial Exposure**: What is the estimated total overpayment at risk?
5. **Narrative Summary**: Write a 2-3 sentence plain-English summary for a compliance officer.

Respond with a JSON object:
{{
  "overallRisk": "Critical" | "High" | "Medium" | "Low",
  "fraudTypology": "<best-fit typology or 'Mixed'>",
  "priorityActions": ["<action 1>", "<action 2>", "<action 3>"],
  "estimatedExposure": <number>,
  "summary": "<2-3 sentence narrative>"
}}"""


def build_portfolio_summary_prompt(results: list[ProviderOutlierResult], all_claims: list[Claim]) -> str:
    """Executive-summary prompt over every provider result."""
    flagged = [r for r in results if r.findings]
    total_exposure = sum(r.total_exposure for r in flagged)
    critical_count = sum(
        1 for r in flagged if any(f.severity == Severity.CRITICAL for f in r.findings)
    )
    provider_count = len({c.provider_id for c in all_claims})

    provider_lines = "\n".join(
        f"- {r.provider_name} ({len(r.findings)} findings, risk {r.risk_score}/100)"
        for r in flagged[:PORTFOLIO_PROVIDER_LIMIT]
    )

    return f"""You are a healthcare program integrity director reviewing an automated outlier detection report.

## Portfolio Overview
- Total Providers Analyzed: {provider_count}
- Providers with Outlier Findings: {len(flagged)}
- Providers with Critical Findings: {critical_count}
- Total Estimated Financial Exposure: ${format_amount(total_exposure)}
- Total Claims in Dataset: {len(all_claims)}

## Top Flagged Providers
{provider_lines}

Generate a 3-5 sentence executive summary suitable for a compliance board report, including:
1. Overall portfolio risk posture
2. Most significant finding types
3. Recommended immediate actions

Respond with plain text (no JSON)."""


def build_provider_recommendation_prompt(result: ProviderOutlierResult) -> str:
    findings_lines = "\n".join(
        f"- [{f.severity.value}] {f.rule_name}: {len(f.affected_claim_ids)} claims, "
        f"${format_amount(f.estimated_impact)} exposure"
        for f in result.findings
    )

    return f"""Generate a structured investigation plan for the following FWA outlier provider.

## Provider: {result.provider_name} ({result.provider_id})
## Overall Risk Score: {result.risk_score}/100

## Outlier Findings
{findings_lines}

Produce:
1. Recommended disposition (Deny / Pre-payment review / Post-payment audit / Monitor)
2. Top 5 prioritized investigation steps
3. Data requests needed from the provider
4. Timeline recommendation (urgent = 24-48h, standard = 5-10 business days)

Format as a concise numbered action plan."""
