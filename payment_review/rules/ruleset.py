"""Default rule catalogs for each review vertical.

Each factory returns a fresh registry so callers can add or replace rules
without affecting other reviews.
"""

from __future__ import annotations

from .categories import DRG_RULES, NECESSITY_RULES, OUTLIER_RULES, READMISSION_RULES
from .registry import RuleRegistry


def outlier_registry() -> RuleRegistry:
    """Provider outlier detectors, pattern and statistical, in report order."""
    registry = RuleRegistry()
    registry.extend(OUTLIER_RULES)
    return registry


def drg_registry() -> RuleRegistry:
    """DRG validation rules.

    Rules are grouped by clinical area: sepsis, cardiovascular,
    respiratory, then general medicine.
    """
    registry = RuleRegistry()
    registry.extend(DRG_RULES)
    return registry


def necessity_registry() -> RuleRegistry:
    """Medical necessity rules.

    Severity of illness and intensity of service run first, followed by
    admission criteria, level of care, continued stay and documentation.
    """
    registry = RuleRegistry()
    registry.extend(NECESSITY_RULES)
    return registry


def readmission_registry() -> RuleRegistry:
    """Readmission rules.

    Clinical relatedness and discharge adequacy run first, followed by
    timing, DRG bundling, quality and documentation checks.
    """
    registry = RuleRegistry()
    registry.extend(READMISSION_RULES)
    return registry


__all__ = [
    "drg_registry",
    "necessity_registry",
    "outlier_registry",
    "readmission_registry",
]
