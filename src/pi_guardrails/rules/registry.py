# SPDX-License-Identifier: MIT
"""Rule registry: ordered, id-unique collection of rules."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Collection, Iterable, Iterator

from pi_guardrails.rules.base import DuplicateRuleError, Rule, RuleConfigError

log = logging.getLogger(__name__)


class RuleRegistry:
    """Rules in registration order. Built once, then only queried."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = []
        self._by_id: dict[str, Rule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> None:
        """Append a rule.

        Raises:
            DuplicateRuleError: If a rule with the same id is already registered.
        """
        rule_id = rule.definition.id
        if rule_id in self._by_id:
            raise DuplicateRuleError(rule_id)
        self._rules.append(rule)
        self._by_id[rule_id] = rule
        log.debug("Registered rule %s (%s)", rule_id, rule.definition.kind)

    def register_all(self, rules: Iterable[Rule]) -> list[RuleConfigError]:
        """Register each rule, collecting id collisions instead of stopping at the first."""
        errors: list[RuleConfigError] = []
        for rule in rules:
            try:
                self.register(rule)
            except DuplicateRuleError as exc:
                log.warning("Skipping rule: %s", exc)
                errors.append(exc)
        return errors

    def enabled_rules(self, filter_ids: Collection[str] | None = None) -> list[Rule]:
        """Enabled rules in registration order, optionally limited to ``filter_ids``."""
        return [
            rule
            for rule in self._rules
            if rule.definition.enabled and (filter_ids is None or rule.definition.id in filter_ids)
        ]

    def rule_ids(self, *, project: bool) -> list[str]:
        """Ids of the rules that inspect project state (``project=True``) or a command."""
        return [rule.definition.id for rule in self._rules if rule.definition.inspects_project is project]

    def by_id(self, rule_id: str) -> Rule | None:
        return self._by_id.get(rule_id)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id


def default_registry(disabled: Collection[str] = ()) -> RuleRegistry:
    """Registry of the built-in rule sets, with ``disabled`` ids switched off."""
    from pi_guardrails.rules.builtin import BUILTIN_RULES
    from pi_guardrails.rules.loader import build_rule

    registry = RuleRegistry()
    for definition in BUILTIN_RULES:
        if definition.id in disabled:
            definition = dataclasses.replace(definition, enabled=False)
        registry.register(build_rule(definition))
    return registry
