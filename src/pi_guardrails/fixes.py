# SPDX-License-Identifier: MIT
"""Fix/apply flow: attempt the registered fix for each fixable violation.

Fixes are independent, not transactional: a failing fix is counted and the
remaining violations are still processed. Dry runs make the same selection
decisions as real runs but never call a fixer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from pi_guardrails.rules.base import EvaluationResult, RuleSeverity
from pi_guardrails.rules.registry import RuleRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    """A rule result as seen by the fix flow."""

    rule_id: str
    severity: RuleSeverity
    message: str
    suggestion: str | None = None
    fixable: bool = False

    @classmethod
    def from_result(cls, result: EvaluationResult, *, fixable: bool = False) -> Violation:
        return cls(
            rule_id=result.rule_id,
            severity=result.severity,
            message=result.message,
            suggestion=result.suggestion,
            fixable=fixable,
        )


class FixStatus(StrEnum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class FixDetail:
    rule_id: str
    status: FixStatus
    message: str


@dataclass
class FixSummary:
    """Counts plus per-violation detail, in input order."""

    dry_run: bool = False
    applied: int = 0
    skipped: int = 0
    failed: int = 0
    details: list[FixDetail] = field(default_factory=list)

    def record(self, rule_id: str, status: FixStatus, message: str) -> None:
        self.details.append(FixDetail(rule_id=rule_id, status=status, message=message))
        if status == FixStatus.APPLIED:
            self.applied += 1
        elif status == FixStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


# A fixer performs the fix and may return a short description of what it did.
Fixer = Callable[[Violation], "str | None"]


def collect_violations(
    results: Iterable[EvaluationResult], registry: RuleRegistry
) -> list[Violation]:
    """Turn engine results into violations, taking fixability from each rule's definition."""
    violations: list[Violation] = []
    for result in results:
        rule = registry.by_id(result.rule_id)
        fixable = rule is not None and rule.definition.fixable
        violations.append(Violation.from_result(result, fixable=fixable))
    return violations


def apply_fixes(
    violations: Iterable[Violation],
    fixers: Mapping[str, Fixer] | None = None,
    *,
    default_fixer: Fixer | None = None,
    dry_run: bool = False,
) -> FixSummary:
    """Apply fixes for fixable violations.

    Args:
        violations: Violations to consider, in report order.
        fixers: Per-rule fixers keyed by rule id.
        default_fixer: Used for fixable violations without a per-rule fixer.
        dry_run: Decide everything, call nothing.

    Returns:
        FixSummary with applied/skipped/failed counts and per-violation detail.
    """
    fixers = fixers or {}
    summary = FixSummary(dry_run=dry_run)
    for violation in violations:
        if not violation.fixable:
            summary.record(violation.rule_id, FixStatus.SKIPPED, "not fixable")
            continue
        fixer = fixers.get(violation.rule_id, default_fixer)
        if fixer is None:
            summary.record(violation.rule_id, FixStatus.SKIPPED, "no fixer registered")
            continue
        if dry_run:
            summary.record(violation.rule_id, FixStatus.APPLIED, "would apply (dry run)")
            continue
        try:
            outcome = fixer(violation)
        except Exception as exc:
            log.warning("Fix for %s failed: %s", violation.rule_id, exc)
            summary.record(violation.rule_id, FixStatus.FAILED, str(exc) or type(exc).__name__)
            continue
        summary.record(violation.rule_id, FixStatus.APPLIED, outcome or "applied")
    return summary


def suggestion_fixer(emit: Callable[[str], None]) -> Fixer:
    """Fixer that hands the rule's rendered suggestion (the safer command) to ``emit``."""

    def _fix(violation: Violation) -> str:
        if not violation.suggestion:
            msg = f"rule {violation.rule_id} has no suggestion to apply"
            raise ValueError(msg)
        emit(violation.suggestion)
        return f"rewritten to: {violation.suggestion}"

    return _fix
