# SPDX-License-Identifier: MIT
"""Tests for file-check rules (asynchronous project-state probes)."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from pi_guardrails.rules.base import Action, RuleConfigError, RuleDefinition, RuleKind, RuleSeverity
from pi_guardrails.rules.context import RuleContext
from pi_guardrails.rules.file_check import FileCheckRule


def _definition(**overrides: object) -> RuleDefinition:
    fields: dict[str, object] = {
        "id": "has-gitignore",
        "kind": RuleKind.FILE_CHECK,
        "severity": RuleSeverity.WARNING,
        "message": "Project has no .gitignore",
        "target": ".gitignore",
    }
    fields.update(overrides)
    return RuleDefinition(**fields)  # type: ignore[arg-type]


class TestFileCheckWithProbe:
    def test_missing_required_file(self) -> None:
        rule = FileCheckRule(_definition(), probe=lambda path: False)
        result = asyncio.run(rule.evaluate(RuleContext(cwd="/project")))
        assert result is not None
        assert result.action == Action.WARN

    def test_present_required_file(self) -> None:
        rule = FileCheckRule(_definition(), probe=lambda path: True)
        assert asyncio.run(rule.evaluate(RuleContext(cwd="/project"))) is None

    def test_lookup_receives_path_under_cwd(self) -> None:
        seen: list[Path] = []

        def probe(path: Path) -> bool:
            seen.append(path)
            return True

        rule = FileCheckRule(_definition(), probe=probe)
        asyncio.run(rule.evaluate(RuleContext(cwd="/project")))
        assert seen == [Path("/project/.gitignore")]

    def test_async_lookup(self) -> None:
        async def probe(path: Path) -> bool:
            await asyncio.sleep(0)
            return False

        rule = FileCheckRule(_definition(), probe=probe)
        assert asyncio.run(rule.evaluate(RuleContext(cwd="/project"))) is not None

    def test_absent_condition(self) -> None:
        rule = FileCheckRule(
            _definition(id="no-env-file", target=".env", condition="absent", severity=RuleSeverity.ERROR),
            probe=lambda path: True,
        )
        result = asyncio.run(rule.evaluate(RuleContext(cwd="/project")))
        assert result is not None
        assert result.action == Action.BLOCK

    def test_absent_cwd_fails_closed(self) -> None:
        rule = FileCheckRule(_definition(), probe=lambda path: False)
        assert asyncio.run(rule.evaluate(RuleContext(command="ls"))) is None

    def test_requires_target(self) -> None:
        with pytest.raises(RuleConfigError, match="target"):
            FileCheckRule(_definition(target=None))

    def test_unknown_condition(self) -> None:
        with pytest.raises(RuleConfigError, match="condition"):
            FileCheckRule(_definition(condition="readable"))


class TestFileCheckOnDisk:
    def test_default_lookup_uses_filesystem(self, tmp_path: Path) -> None:
        rule = FileCheckRule(_definition())
        ctx = RuleContext(cwd=str(tmp_path))
        assert asyncio.run(rule.evaluate(ctx)) is not None
        (tmp_path / ".gitignore").write_text("*.pyc\n", encoding="utf-8")
        assert asyncio.run(rule.evaluate(ctx)) is None
