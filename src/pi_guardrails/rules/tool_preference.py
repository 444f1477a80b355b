# SPDX-License-Identifier: MIT
"""tool-preference rules: nudge toward a modern tool, never block.

Two flavours share the kind. Without a condition the rule matches the invoked
command and suggests the preferred tool. With ``condition: installed`` it is a
project-state check that looks the preferred tool up on the context's PATH.
"""

from __future__ import annotations

import asyncio
import inspect
import shutil
from collections.abc import Awaitable, Callable

from pi_guardrails.rules.base import (
    TOOL_INSTALLED,
    Action,
    EvaluationResult,
    RuleConfigError,
    RuleDefinition,
)
from pi_guardrails.rules.command_pattern import CommandPatternRule, build_result, is_whitelisted
from pi_guardrails.rules.context import RuleContext

# (tool name, PATH string) -> whether the tool resolves
ToolProbe = Callable[[str, str], "bool | Awaitable[bool]"]


async def tool_on_path(tool: str, search_path: str) -> bool:
    """Default probe: ``shutil.which`` over ``search_path`` in a worker thread."""
    found = await asyncio.to_thread(shutil.which, tool, path=search_path)
    return found is not None


class ToolPreferenceRule(CommandPatternRule):
    """Suggest ``definition.preferred`` instead of the matched tool.

    Always ALLOW regardless of severity. Silent when the command already
    mentions the preferred tool.
    """

    def __init__(self, definition: RuleDefinition) -> None:
        if definition.condition is not None:
            msg = f"unknown tool-preference condition {definition.condition!r}, expected {TOOL_INSTALLED!r}"
            raise RuleConfigError(definition.id, msg)
        super().__init__(definition)

    def action(self) -> Action:
        return Action.ALLOW

    def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        preferred = self.definition.preferred
        if ctx.command and preferred and preferred in ctx.command:
            return None
        return super().evaluate(ctx)


class ToolPresenceRule:
    """Flag a missing ``definition.preferred`` tool. Always ALLOW.

    An empty or missing PATH in the context resolves nothing.
    """

    def __init__(self, definition: RuleDefinition, probe: ToolProbe | None = None) -> None:
        if not definition.preferred:
            raise RuleConfigError(definition.id, "installed check requires a preferred tool")
        self.definition = definition
        self._probe: ToolProbe = probe or tool_on_path

    async def _installed(self, search_path: str) -> bool:
        found = self._probe(self.definition.preferred or "", search_path)
        if inspect.isawaitable(found):
            found = await found
        return bool(found)

    async def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        if ctx.env is None:
            return None
        if await self._installed(ctx.env.get("PATH", "")):
            return None
        if is_whitelisted(self.definition.whitelist, ctx):
            return None
        return build_result(self.definition, Action.ALLOW, ctx)
