"""Core rules evaluation engine."""
from __future__ import annotations

import logging
from typing import Any

from payment_review.errors import RuleInputError

from .models import RuleRunResult, RuleWarning
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


def run_rules(
    registry: RuleRegistry,
    *args: Any,
    strict: bool = False,
) -> RuleRunResult:
    """Evaluate every rule in ``registry`` against the same inputs.

    Rules run in registration order and all run to completion. A rule that
    raises ``RuleInputError`` produces no finding; in strict mode the error
    is recorded as a ``RuleWarning`` on the result.

    Args:
        registry: Ordered rules to evaluate
        *args: Entity under review followed by any cohort context
        strict: Record parse warnings instead of skipping silently

    Returns:
        RuleRunResult with findings in rule order
    """
    result = RuleRunResult()

    for rule in registry.active_rules():
        try:
            finding = rule.check(*args)
        except RuleInputError as exc:
            logger.debug(f"Rule {rule.rule_id} skipped: {exc}")
            if strict:
                result.add_warning(RuleWarning(rule_id=rule.rule_id, message=str(exc), field=exc.field))
            continue
        if finding is not None:
            result.add_finding(finding)

    logger.debug(f"{len(result.findings)} findings from {len(registry)} rules")
    return result
