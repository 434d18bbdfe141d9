"""Shared fragments for prompt rendering."""

from __future__ import annotations

from collections.abc import Iterable

from payment_review.schemas.common import Finding, ICD10Code
from payment_review.utils import format_amount


def diagnosis_line(dx: ICD10Code) -> str:
    """``- CODE: description`` with an ``[MCC]`` or ``[CC]`` marker."""
    marker = " [MCC]" if dx.is_mcc else " [CC]" if dx.is_cc else ""
    return f"- {dx.code}: {dx.description}{marker}"


def diagnosis_list(diagnoses: Iterable[ICD10Code]) -> str:
    return "\n".join(diagnosis_line(dx) for dx in diagnoses)


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def bullet_list(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def numbered_findings(findings: Iterable[Finding]) -> str:
    """Numbered findings with severity, category and financial impact."""
    return "\n".join(
        f"{i}. [{f.severity.value}] {getattr(f.category, 'value', f.category)}: "
        f"{f.description} (Financial impact: ${format_amount(f.financial_impact or 0)})"
        for i, f in enumerate(findings, start=1)
    )
