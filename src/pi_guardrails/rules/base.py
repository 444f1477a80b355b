# SPDX-License-Identifier: MIT
"""Severity, action, rule definition/result dataclasses, and the Rule protocol."""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pi_guardrails.rules.context import RuleContext


class RuleSeverity(IntEnum):
    """Severity levels, ordered for result sorting (most severe first)."""

    ERROR = 0
    WARNING = 1
    INFO = 2

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str | RuleSeverity) -> RuleSeverity:
        """Accept a member or its lower-case label ("error", "warning", "info")."""
        if isinstance(value, RuleSeverity):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            msg = f"Unknown severity: {value!r}. Valid severities: {[s.label for s in cls]}"
            raise ValueError(msg) from None


class Action(StrEnum):
    ALLOW = "ALLOW"
    WARN = "WARN"
    BLOCK = "BLOCK"

    @property
    def rank(self) -> int:
        """Gate ordering: ALLOW < WARN < BLOCK."""
        return _ACTION_RANK[self]


_ACTION_RANK = {Action.ALLOW: 0, Action.WARN: 1, Action.BLOCK: 2}


class RuleKind(StrEnum):
    COMMAND_PATTERN = "command-pattern"
    TOOL_PREFERENCE = "tool-preference"
    FILE_CHECK = "file-check"
    ENV_CHECK = "env-check"


# tool-preference condition: check the preferred tool is installed instead of matching a command
TOOL_INSTALLED = "installed"


_SEVERITY_ACTIONS = {
    RuleSeverity.ERROR: Action.BLOCK,
    RuleSeverity.WARNING: Action.WARN,
    RuleSeverity.INFO: Action.ALLOW,
}


def action_for_severity(severity: RuleSeverity) -> Action:
    """Default severity-to-action mapping: error→BLOCK, warning→WARN, info→ALLOW."""
    return _SEVERITY_ACTIONS[severity]


class RuleConfigError(ValueError):
    """Raised when a rule cannot be built or registered."""

    def __init__(self, rule_id: str, reason: str) -> None:
        self.rule_id = rule_id
        self.reason = reason
        super().__init__(f"Rule {rule_id!r}: {reason}")


class DuplicateRuleError(RuleConfigError):
    """Raised when a rule id is registered twice."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(rule_id, "id already registered")


@dataclass(frozen=True)
class RuleDefinition:
    """Immutable rule descriptor, from a built-in registration or loaded config."""

    id: str
    kind: RuleKind
    severity: RuleSeverity
    message: str
    pattern: str | None = None
    enabled: bool = True
    suggestion: str | None = None  # may contain "{{args}}"
    whitelist: frozenset[str] = field(default_factory=frozenset)
    require_explicit: bool = False
    bypass_flag: str | None = None  # rule-specific override; default "--force-<id>"
    fixable: bool = False
    # Kind-specific
    preferred: str | None = None  # tool-preference: the modern tool
    target: str | None = None  # file-check path / env-check variable name
    condition: str | None = None  # file-check: exists|absent, env-check: set|unset, tool-preference: installed

    @property
    def resolved_bypass_flag(self) -> str | None:
        """The flag that bypasses this rule, or None when no bypass is required."""
        if not self.require_explicit:
            return None
        return self.bypass_flag or f"--force-{self.id}"

    @property
    def inspects_project(self) -> bool:
        """True for rules about project state (files, env, installed tools) rather than a command."""
        if self.kind in (RuleKind.FILE_CHECK, RuleKind.ENV_CHECK):
            return True
        return self.kind == RuleKind.TOOL_PREFERENCE and self.condition == TOOL_INSTALLED


@dataclass(frozen=True)
class EvaluationResult:
    """The decision a single rule produced for one context."""

    action: Action
    rule_id: str
    message: str
    severity: RuleSeverity
    suggestion: str | None = None
    bypass_flag: str | None = None


@runtime_checkable
class Rule(Protocol):
    """Protocol every rule satisfies. ``evaluate`` may be sync or async."""

    definition: RuleDefinition

    def evaluate(
        self, ctx: RuleContext
    ) -> EvaluationResult | None | Awaitable[EvaluationResult | None]: ...
