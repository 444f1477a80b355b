# SPDX-License-Identifier: MIT
"""Rule loading: validate declarations, apply overrides, build rule objects.

Declarations arrive as already-parsed mappings (from a config file, a test, or
any other source) and are validated with pydantic. A rejected declaration is
logged and reported back; it never stops the remaining rules from loading.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)

from pi_guardrails.rules.base import (
    TOOL_INSTALLED,
    Rule,
    RuleConfigError,
    RuleDefinition,
    RuleKind,
    RuleSeverity,
)
from pi_guardrails.rules.command_pattern import CommandPatternRule
from pi_guardrails.rules.env_check import EnvCheckRule
from pi_guardrails.rules.file_check import FileCheckRule, PathProbe
from pi_guardrails.rules.tool_preference import ToolPreferenceRule, ToolPresenceRule, ToolProbe

log = logging.getLogger(__name__)

# Kind spellings used by older rule files
_KIND_ALIASES: dict[str, RuleKind] = {
    "command_intercept": RuleKind.COMMAND_PATTERN,
    "command_pattern": RuleKind.COMMAND_PATTERN,
    "tool_check": RuleKind.TOOL_PREFERENCE,
    "tool_preference": RuleKind.TOOL_PREFERENCE,
    "file_check": RuleKind.FILE_CHECK,
    "env_check": RuleKind.ENV_CHECK,
    "env_guard": RuleKind.ENV_CHECK,
}

_CONDITION_ALIASES = {"not_exists": "absent"}

_COMMAND_KINDS = frozenset({RuleKind.COMMAND_PATTERN, RuleKind.TOOL_PREFERENCE})

WhitelistEntry = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _parse_severity(value: Any) -> Any:
    if isinstance(value, str):
        return RuleSeverity.parse(value)
    return value


class RuleDeclaration(BaseModel):
    """A rule as declared in configuration.

    Older rule files spell some fields differently: ``type`` for ``kind``,
    ``path`` for a file target, ``tool`` / ``alternatives`` for the preferred
    tool, and ``action`` / ``to`` for a command redirect. A command rule with a
    ``target`` but no ``pattern`` matches that command name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(min_length=1)
    kind: RuleKind = Field(validation_alias=AliasChoices("kind", "type"))
    severity: RuleSeverity = RuleSeverity.WARNING
    message: str
    pattern: str | None = None
    enabled: bool = True
    suggestion: str | None = None
    whitelist: list[WhitelistEntry] = Field(default_factory=list)
    require_explicit: bool = False
    bypass_flag: str | None = None
    fixable: bool = False
    preferred: str | None = Field(default=None, validation_alias=AliasChoices("preferred", "tool"))
    target: str | None = Field(default=None, validation_alias=AliasChoices("target", "path"))
    condition: str | None = None
    alternatives: list[str] = Field(default_factory=list)
    action: Literal["redirect", "block", "confirm", "suggest", "validate"] | None = None
    to: str | None = None

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _KIND_ALIASES.get(value, value)
        return value

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> Any:
        return _parse_severity(value)

    @field_validator("condition", mode="before")
    @classmethod
    def _normalize_condition(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _CONDITION_ALIASES.get(value, value)
        return value

    def _pattern(self) -> str | None:
        if self.pattern is not None or not self.target or self.kind not in _COMMAND_KINDS:
            return self.pattern
        if self.condition == TOOL_INSTALLED:
            return None
        return rf"^{re.escape(self.target)}(?:\s|$)"

    def _suggestion(self, preferred: str | None) -> str | None:
        if self.suggestion is not None:
            return self.suggestion
        if self.to and self.action == "redirect":
            return f"{self.to} {{{{args}}}}"
        if self.to:
            return self.to
        if self.kind == RuleKind.TOOL_PREFERENCE and preferred and self.condition != TOOL_INSTALLED:
            return f"{preferred} {{{{args}}}}"
        return None

    def to_definition(self) -> RuleDefinition:
        preferred = self.preferred or next(iter(self.alternatives), None)
        return RuleDefinition(
            id=self.id,
            kind=self.kind,
            severity=self.severity,
            message=self.message,
            pattern=self._pattern(),
            enabled=self.enabled,
            suggestion=self._suggestion(preferred),
            whitelist=frozenset(self.whitelist),
            require_explicit=self.require_explicit,
            bypass_flag=self.bypass_flag,
            fixable=self.fixable or self.action == "redirect",
            preferred=preferred,
            target=self.target,
            condition=self.condition,
        )


class RuleOverride(BaseModel):
    """User adjustments layered over a declaration (enable, severity, whitelist)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool | None = None
    severity: RuleSeverity | None = None
    whitelist: list[WhitelistEntry] = Field(default_factory=list)
    require_explicit: bool | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> Any:
        return _parse_severity(value)

    def apply(self, declaration: RuleDeclaration) -> RuleDeclaration:
        update: dict[str, Any] = {}
        if self.enabled is not None:
            update["enabled"] = self.enabled
        if self.severity is not None:
            update["severity"] = self.severity
        if self.require_explicit is not None:
            update["require_explicit"] = self.require_explicit
        if self.whitelist:
            update["whitelist"] = [*declaration.whitelist, *self.whitelist]
        return declaration.model_copy(update=update)


_RULE_FACTORIES: dict[RuleKind, Callable[..., Rule]] = {
    RuleKind.COMMAND_PATTERN: CommandPatternRule,
    RuleKind.TOOL_PREFERENCE: ToolPreferenceRule,
    RuleKind.ENV_CHECK: EnvCheckRule,
}


def build_rule(
    definition: RuleDefinition,
    *,
    probe: PathProbe | None = None,
    tool_probe: ToolProbe | None = None,
) -> Rule:
    """Bind a definition to the predicate for its kind.

    ``probe`` and ``tool_probe`` replace the filesystem and PATH lookups of
    file-check and installed-tool rules.

    Raises:
        RuleConfigError: If the definition is unusable (e.g. malformed pattern).
    """
    if definition.kind == RuleKind.FILE_CHECK:
        return FileCheckRule(definition, probe=probe)
    if definition.kind == RuleKind.TOOL_PREFERENCE and definition.condition == TOOL_INSTALLED:
        return ToolPresenceRule(definition, probe=tool_probe)
    factory = _RULE_FACTORIES.get(definition.kind)
    if factory is None:
        raise RuleConfigError(definition.id, f"unsupported rule kind {definition.kind!r}")
    return factory(definition)


def _declaration_id(raw: Mapping[str, Any] | RuleDeclaration) -> str:
    if isinstance(raw, RuleDeclaration):
        return raw.id
    return str(raw.get("id") or "<unnamed>")


def _summarize(exc: ValidationError) -> str:
    """Field paths and error types only, not the offending values."""
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        parts.append(f"{loc}: {err['type']}")
    return "; ".join(parts)


def parse_declaration(raw: Mapping[str, Any] | RuleDeclaration) -> RuleDeclaration:
    """Validate one declaration.

    Raises:
        RuleConfigError: If the mapping does not describe a valid rule.
    """
    if isinstance(raw, RuleDeclaration):
        return raw
    try:
        return RuleDeclaration.model_validate(raw)
    except ValidationError as exc:
        raise RuleConfigError(_declaration_id(raw), f"invalid declaration ({_summarize(exc)})") from exc


@dataclass
class LoadResult:
    """Rules that loaded, and the configuration errors for those that did not."""

    rules: list[Rule] = field(default_factory=list)
    errors: list[RuleConfigError] = field(default_factory=list)


def load_rules(
    declarations: Iterable[Mapping[str, Any] | RuleDeclaration],
    overrides: Mapping[str, Mapping[str, Any] | RuleOverride] | None = None,
    *,
    probe: PathProbe | None = None,
    tool_probe: ToolProbe | None = None,
) -> LoadResult:
    """Validate, override and build each declaration independently."""
    result = LoadResult()
    overrides = overrides or {}
    for raw in declarations:
        try:
            declaration = parse_declaration(raw)
            override = overrides.get(declaration.id)
            if override is not None:
                if not isinstance(override, RuleOverride):
                    try:
                        override = RuleOverride.model_validate(override)
                    except ValidationError as exc:
                        msg = f"invalid override ({_summarize(exc)})"
                        raise RuleConfigError(declaration.id, msg) from exc
                declaration = override.apply(declaration)
            result.rules.append(build_rule(
                    declaration.to_definition(), probe=probe, tool_probe=tool_probe
                ))
        except RuleConfigError as exc:
            log.warning("Skipping rule: %s", exc)
            result.errors.append(exc)
    return result
