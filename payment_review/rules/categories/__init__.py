"""Review rules organized by review vertical."""

from __future__ import annotations

from .drg_rules import DRG_RULES
from .necessity_rules import NECESSITY_RULES
from .outlier_rules import OUTLIER_RULES
from .readmission_rules import READMISSION_RULES

__all__ = [
    "DRG_RULES",
    "NECESSITY_RULES",
    "OUTLIER_RULES",
    "READMISSION_RULES",
]
