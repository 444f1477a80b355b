# SPDX-License-Identifier: MIT
"""Rule engine: runs a context through the enabled rules and orders the results."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Collection
from typing import TYPE_CHECKING

from pi_guardrails.rules.base import EvaluationResult, Rule

if TYPE_CHECKING:
    from pi_guardrails.rules.config import ProfileConfig
    from pi_guardrails.rules.context import RuleContext
    from pi_guardrails.rules.registry import RuleRegistry

log = logging.getLogger(__name__)


class RuleEngine:
    """Evaluates every enabled rule of a registry, in registration order."""

    def __init__(self, registry: RuleRegistry | None = None) -> None:
        from pi_guardrails.rules.registry import default_registry

        self.registry = registry if registry is not None else default_registry()

    async def evaluate(
        self, ctx: RuleContext, rule_ids: Collection[str] | None = None
    ) -> list[EvaluationResult]:
        """Await each rule in turn, then stable-sort by severity (error first).

        A rule that raises contributes nothing; the remaining rules still run.
        """
        results: list[EvaluationResult] = []
        for rule in self.registry.enabled_rules(rule_ids):
            result = await self._evaluate_rule(rule, ctx)
            if result is not None:
                results.append(result)
        return sorted(results, key=lambda r: r.severity)

    async def _evaluate_rule(self, rule: Rule, ctx: RuleContext) -> EvaluationResult | None:
        rule_id = rule.definition.id
        try:
            outcome = rule.evaluate(ctx)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            log.warning("Rule %s failed, skipping it for this evaluation: %s", rule_id, exc, exc_info=True)
            return None
        if outcome is not None and not isinstance(outcome, EvaluationResult):
            log.warning(
                "Rule %s returned %s instead of an EvaluationResult, ignoring it",
                rule_id,
                type(outcome).__name__,
            )
            return None
        return outcome

    def run(
        self, ctx: RuleContext, rule_ids: Collection[str] | None = None
    ) -> list[EvaluationResult]:
        """Synchronous entry point. Not for use inside a running event loop."""
        return asyncio.run(self.evaluate(ctx, rule_ids))

    def check_gate(self, results: list[EvaluationResult], config: ProfileConfig) -> bool:
        """Return True if any result's action meets the profile's fail_on threshold."""
        if config.fail_on is None:
            return False
        return any(r.action.rank >= config.fail_on.rank for r in results)

    def exit_code(self, results: list[EvaluationResult], config: ProfileConfig) -> int:
        return 1 if self.check_gate(results, config) else 0
