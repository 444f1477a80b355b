# SPDX-License-Identifier: MIT
"""Console formatting for evaluation results, rule listings, and fix summaries."""

from __future__ import annotations

from collections.abc import Iterable

from pi_guardrails.fixes import FixSummary
from pi_guardrails.rules.base import EvaluationResult, Rule, RuleSeverity

_SEVERITY_ICONS = {
    RuleSeverity.ERROR: "❌",
    RuleSeverity.WARNING: "⚠️",
    RuleSeverity.INFO: "ℹ️",
}


def format_results(results: list[EvaluationResult]) -> str:
    if not results:
        return "✅ No guardrails triggered"
    blocks: list[str] = []
    for r in results:
        lines = [
            f"{_SEVERITY_ICONS[r.severity]} [{r.severity.label.upper()}] {r.action} {r.rule_id}",
            f"   {r.message}",
        ]
        if r.suggestion:
            lines.append(f"   Suggestion: {r.suggestion}")
        if r.bypass_flag:
            lines.append(f"   Use {r.bypass_flag} to bypass")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_rule_list(rules: Iterable[Rule]) -> str:
    lines: list[str] = []
    for rule in rules:
        d = rule.definition
        status = "on " if d.enabled else "off"
        lines.append(f"  [{status}] {d.id:<28} {d.kind:<16} {d.severity.label}")
    if not lines:
        return "  No rules registered"
    return "\n".join(lines)


def format_fix_summary(summary: FixSummary) -> str:
    header = "Fix Results (dry run):" if summary.dry_run else "Fix Results:"
    lines = [
        header,
        f"  Applied: {summary.applied}",
        f"  Skipped: {summary.skipped}",
        f"  Failed: {summary.failed}",
    ]
    for detail in summary.details:
        lines.append(f"  - {detail.rule_id}: {detail.status} ({detail.message})")
    return "\n".join(lines)
