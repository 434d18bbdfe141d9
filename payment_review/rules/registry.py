"""Rule registry holding an ordered set of rules."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Rule


class RuleRegistry:
    """Ordered collection of rules. Registration order is evaluation order."""

    def __init__(self, rules: Iterable[Rule] | None = None) -> None:
        self._rules: list[Rule] = []
        if rules:
            self.extend(rules)

    def register(self, rule: Rule) -> None:
        if any(existing.rule_id == rule.rule_id for existing in self._rules):
            return
        self._rules.append(rule)

    def extend(self, rules: Iterable[Rule]) -> None:
        for rule in rules:
            self.register(rule)

    def replace(self, rule: Rule) -> None:
        """Swap the rule with the same id in place, keeping its position."""
        for index, existing in enumerate(self._rules):
            if existing.rule_id == rule.rule_id:
                self._rules[index] = rule
                return
        raise KeyError(rule.rule_id)

    def get(self, rule_id: str) -> Rule | None:
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def active_rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)
