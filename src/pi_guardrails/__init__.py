# SPDX-License-Identifier: MIT
"""pi-guardrails: evaluates shell commands against guardrail rules."""

from pi_guardrails.fixes import FixSummary, Violation, apply_fixes, collect_violations
from pi_guardrails.rules import (
    Action,
    EvaluationResult,
    RuleContext,
    RuleDefinition,
    RuleEngine,
    RuleRegistry,
    RuleSeverity,
    apply_bypass,
    check_command,
    default_registry,
    load_rules,
)

__all__ = [
    "Action",
    "EvaluationResult",
    "FixSummary",
    "RuleContext",
    "RuleDefinition",
    "RuleEngine",
    "RuleRegistry",
    "RuleSeverity",
    "Violation",
    "apply_bypass",
    "apply_fixes",
    "check_command",
    "collect_violations",
    "default_registry",
    "load_rules",
]
