"""Rules engine for claims payment review."""

from .engine import run_rules
from .models import Rule, RuleRunResult, RuleWarning
from .registry import RuleRegistry
from .ruleset import drg_registry, necessity_registry, outlier_registry, readmission_registry

__all__ = [
    "run_rules",
    "Rule",
    "RuleRegistry",
    "RuleRunResult",
    "RuleWarning",
    "drg_registry",
    "necessity_registry",
    "outlier_registry",
    "readmission_registry",
]
