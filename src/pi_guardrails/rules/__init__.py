# SPDX-License-Identifier: MIT
"""Guardrail rule engine: regex rules that decide ALLOW, WARN or BLOCK."""

from pi_guardrails.rules.base import (
    Action,
    DuplicateRuleError,
    EvaluationResult,
    Rule,
    RuleConfigError,
    RuleDefinition,
    RuleKind,
    RuleSeverity,
)
from pi_guardrails.rules.bypass import apply_bypass
from pi_guardrails.rules.config import ProfileConfig, load_profile
from pi_guardrails.rules.context import RuleContext
from pi_guardrails.rules.engine import RuleEngine
from pi_guardrails.rules.loader import RuleDeclaration, RuleOverride, build_rule, load_rules
from pi_guardrails.rules.registry import RuleRegistry, default_registry

__all__ = [
    "Action",
    "DuplicateRuleError",
    "EvaluationResult",
    "ProfileConfig",
    "Rule",
    "RuleConfigError",
    "RuleContext",
    "RuleDeclaration",
    "RuleDefinition",
    "RuleEngine",
    "RuleKind",
    "RuleOverride",
    "RuleRegistry",
    "RuleSeverity",
    "apply_bypass",
    "build_rule",
    "default_registry",
    "load_profile",
    "load_rules",
]


def check_command(command: str, *, bypass_flags: tuple[str, ...] = ()) -> list[EvaluationResult]:
    """Convenience: evaluate a command line against the built-in command rules."""
    ctx = RuleContext.from_command(command)
    engine = RuleEngine()
    results = engine.run(ctx, engine.registry.rule_ids(project=False))
    return apply_bypass(results, bypass_flags)


def check_gate(results: list[EvaluationResult], profile: ProfileConfig) -> bool:
    """Convenience: check if any results exceed the profile gate."""
    engine = RuleEngine(registry=RuleRegistry())
    return engine.check_gate(results, profile)
