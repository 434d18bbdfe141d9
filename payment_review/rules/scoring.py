"""Severity weights and score bounds shared by the review backends."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

# Points per finding used by the DRG, medical necessity and readmission
# risk scores.
SEVERITY_POINTS: Mapping[str, int] = MappingProxyType(
    {"Critical": 25, "High": 15, "Medium": 8, "Low": 3}
)

# Points per finding used by the provider outlier risk score.
OUTLIER_SEVERITY_WEIGHTS: Mapping[str, int] = MappingProxyType(
    {"Critical": 30, "High": 20, "Medium": 10, "Low": 4}
)

SCORE_MIN = 0
SCORE_MAX = 100


def clamp_score(score: float) -> float:
    if score < SCORE_MIN:
        return SCORE_MIN
    if score > SCORE_MAX:
        return SCORE_MAX
    return score


def severity_score(findings: Iterable[Any], weights: Mapping[str, int] = SEVERITY_POINTS) -> int:
    """Sum of per-severity points over ``findings``."""
    return sum(weights.get(_severity_value(f.severity), 0) for f in findings)


def confidence_score(finding_count: int, *, clean: int, start: int, step: int, floor: int) -> int:
    """Confidence: ``clean`` with no findings, else ``start - step * n`` floored."""
    if finding_count == 0:
        return clean
    return max(floor, start - finding_count * step)


def _severity_value(severity: Any) -> str:
    return getattr(severity, "value", severity)
