"""Data models for the rules engine."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# A rule check receives the entity under review plus optional cohort
# context and returns a finding model or None when the rule does not fire.
RuleCheck = Callable[..., Any]


@dataclass(frozen=True)
class Rule:
    """A named, categorized check over one review entity."""

    rule_id: str
    name: str
    category: str
    check: RuleCheck

    def __call__(self, *args: Any) -> Any:
        return self.check(*args)


@dataclass(frozen=True)
class RuleWarning:
    """A rule skipped because its input could not be parsed."""

    rule_id: str
    message: str
    field: str | None = None


@dataclass
class RuleRunResult:
    """Container for findings and parse warnings from one rule run."""

    findings: list[Any] = field(default_factory=list)
    warnings: list[RuleWarning] = field(default_factory=list)

    def add_finding(self, finding: Any) -> None:
        self.findings.append(finding)

    def add_warning(self, warning: RuleWarning) -> None:
        self.warnings.append(warning)
