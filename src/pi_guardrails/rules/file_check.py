# SPDX-License-Identifier: MIT
"""file-check rules: project state probes relative to the working directory.

Suspends like the installed-tool check: the probe may touch the filesystem, so it
runs off the event loop and the engine awaits it like any other predicate.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from pathlib import Path

from pi_guardrails.rules.base import (
    EvaluationResult,
    RuleConfigError,
    RuleDefinition,
    action_for_severity,
)
from pi_guardrails.rules.command_pattern import build_result, is_whitelisted
from pi_guardrails.rules.context import RuleContext

FILE_CONDITIONS = frozenset({"exists", "absent"})

PathProbe = Callable[[Path], "bool | Awaitable[bool]"]


async def path_exists(path: Path) -> bool:
    """Default probe: ``Path.exists`` in a worker thread."""
    return await asyncio.to_thread(path.exists)


class FileCheckRule:
    """Flag a project whose ``target`` path violates ``condition``.

    "exists" (default) flags a missing path; "absent" flags a present one.
    """

    def __init__(self, definition: RuleDefinition, probe: PathProbe | None = None) -> None:
        if not definition.target:
            raise RuleConfigError(definition.id, "file-check rule requires a target path")
        condition = definition.condition or "exists"
        if condition not in FILE_CONDITIONS:
            msg = f"unknown file-check condition {condition!r}, expected one of {sorted(FILE_CONDITIONS)}"
            raise RuleConfigError(definition.id, msg)
        self.definition = definition
        self._condition = condition
        self._probe: PathProbe = probe or path_exists

    async def _exists(self, path: Path) -> bool:
        found = self._probe(path)
        if inspect.isawaitable(found):
            found = await found
        return bool(found)

    async def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        if ctx.cwd is None:
            return None
        path = Path(ctx.cwd) / (self.definition.target or "")
        exists = await self._exists(path)
        violated = not exists if self._condition == "exists" else exists
        if not violated:
            return None
        if is_whitelisted(self.definition.whitelist, ctx):
            return None
        return build_result(self.definition, action_for_severity(self.definition.severity), ctx)
