# SPDX-License-Identifier: MIT
"""env-check rules: required or forbidden environment variable values."""

from __future__ import annotations

import re
from collections.abc import Mapping

from pi_guardrails.rules.base import (
    EvaluationResult,
    RuleConfigError,
    RuleDefinition,
    action_for_severity,
)
from pi_guardrails.rules.command_pattern import build_result, compile_pattern, is_whitelisted
from pi_guardrails.rules.context import RuleContext

ENV_CONDITIONS = frozenset({"set", "unset"})


class EnvCheckRule:
    """Inspect ``context.env[definition.target]``.

    With a pattern: violation when the variable is present and its value
    matches. Without one, ``condition`` decides: "set" (default) flags a
    missing variable, "unset" flags a present one.
    """

    def __init__(self, definition: RuleDefinition) -> None:
        if not definition.target:
            raise RuleConfigError(definition.id, "env-check rule requires a target variable")
        condition = definition.condition or "set"
        if condition not in ENV_CONDITIONS:
            msg = f"unknown env-check condition {condition!r}, expected one of {sorted(ENV_CONDITIONS)}"
            raise RuleConfigError(definition.id, msg)
        self.definition = definition
        self._condition = condition
        self._pattern: re.Pattern[str] | None = (
            compile_pattern(definition) if definition.pattern else None
        )

    def _violates(self, env: Mapping[str, str]) -> bool:
        value = env.get(self.definition.target or "")
        if self._pattern is not None:
            return value is not None and self._pattern.search(value) is not None
        if self._condition == "set":
            return value is None
        return value is not None

    def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        if ctx.env is None:
            return None
        if not self._violates(ctx.env):
            return None
        if is_whitelisted(self.definition.whitelist, ctx):
            return None
        return build_result(self.definition, action_for_severity(self.definition.severity), ctx)
