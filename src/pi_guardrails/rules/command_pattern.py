# SPDX-License-Identifier: MIT
"""command-pattern rules: regex match on the invoked command line."""

from __future__ import annotations

import re
from collections.abc import Iterable

from pi_guardrails.rules.base import (
    Action,
    EvaluationResult,
    RuleConfigError,
    RuleDefinition,
    action_for_severity,
)
from pi_guardrails.rules.context import RuleContext

ARGS_PLACEHOLDER = "{{args}}"


def compile_pattern(definition: RuleDefinition) -> re.Pattern[str]:
    """Compile a rule's pattern case-insensitively, or raise RuleConfigError."""
    if not definition.pattern:
        raise RuleConfigError(definition.id, f"{definition.kind} rule requires a pattern")
    try:
        return re.compile(definition.pattern, re.IGNORECASE)
    except re.error as exc:
        raise RuleConfigError(definition.id, f"malformed pattern: {exc}") from exc


def is_whitelisted(whitelist: Iterable[str], ctx: RuleContext) -> bool:
    """True if any entry is a substring of the command or of any single arg.

    Blank entries never match; they would otherwise exempt every command.
    """
    for entry in whitelist:
        if not entry.strip():
            continue
        if ctx.command is not None and entry in ctx.command:
            return True
        if any(entry in arg for arg in ctx.args):
            return True
    return False


def render_suggestion(template: str | None, ctx: RuleContext) -> str | None:
    """Substitute ``{{args}}`` with the context's args joined by single spaces."""
    if template is None:
        return None
    return template.replace(ARGS_PLACEHOLDER, ctx.args_text)


def build_result(definition: RuleDefinition, action: Action, ctx: RuleContext) -> EvaluationResult:
    """Assemble the full result for a matched, non-whitelisted rule."""
    return EvaluationResult(
        action=action,
        rule_id=definition.id,
        message=definition.message,
        severity=definition.severity,
        suggestion=render_suggestion(definition.suggestion, ctx),
        bypass_flag=definition.resolved_bypass_flag,
    )


class CommandPatternRule:
    """Match ``definition.pattern`` against the command; action follows severity."""

    def __init__(self, definition: RuleDefinition) -> None:
        self.definition = definition
        self._pattern = compile_pattern(definition)

    def action(self) -> Action:
        return action_for_severity(self.definition.severity)

    def matches(self, ctx: RuleContext) -> bool:
        return ctx.command is not None and self._pattern.search(ctx.command) is not None

    def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        if not ctx.command:
            return None
        if not self.matches(ctx):
            return None
        if is_whitelisted(self.definition.whitelist, ctx):
            return None
        return build_result(self.definition, self.action(), ctx)
