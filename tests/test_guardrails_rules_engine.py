# SPDX-License-Identifier: MIT
"""Tests for pi_guardrails.rules.engine: evaluation, ordering, failures, gate."""

from __future__ import annotations

import asyncio

import pytest

from pi_guardrails.rules.base import (
    Action,
    EvaluationResult,
    RuleDefinition,
    RuleKind,
    RuleSeverity,
)
from pi_guardrails.rules.builtin import BUILTIN_RULES
from pi_guardrails.rules.command_pattern import CommandPatternRule
from pi_guardrails.rules.config import ProfileConfig
from pi_guardrails.rules.context import RuleContext
from pi_guardrails.rules.engine import RuleEngine
from pi_guardrails.rules.registry import RuleRegistry


def _definition(rule_id: str, severity: RuleSeverity, *, enabled: bool = True) -> RuleDefinition:
    return RuleDefinition(
        id=rule_id,
        kind=RuleKind.COMMAND_PATTERN,
        severity=severity,
        message=f"{rule_id} fired",
        pattern=".",
        enabled=enabled,
    )


def _rule(rule_id: str, severity: RuleSeverity, *, enabled: bool = True) -> CommandPatternRule:
    return CommandPatternRule(_definition(rule_id, severity, enabled=enabled))


class _ExplodingRule:
    """Test rule whose predicate always raises."""

    def __init__(self, rule_id: str = "explodes") -> None:
        self.definition = _definition(rule_id, RuleSeverity.ERROR)

    def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        raise RuntimeError("predicate bug")


class _AsyncRule:
    """Test rule with a suspending predicate."""

    def __init__(self, rule_id: str, severity: RuleSeverity) -> None:
        self.definition = _definition(rule_id, severity)
        self.calls = 0

    async def evaluate(self, ctx: RuleContext) -> EvaluationResult | None:
        await asyncio.sleep(0)
        self.calls += 1
        return EvaluationResult(
            action=Action.WARN,
            rule_id=self.definition.id,
            message="async",
            severity=self.definition.severity,
        )


class _WrongTypeRule:
    """Test rule that returns something other than a result."""

    def __init__(self) -> None:
        self.definition = _definition("wrong-type", RuleSeverity.ERROR)

    def evaluate(self, ctx: RuleContext) -> object:
        return {"action": "BLOCK"}


def _ctx(command: str | None = "anything") -> RuleContext:
    return RuleContext(command=command, args=(), env={}, cwd="/work")


class TestRuleEngine:
    def test_run_collects_results(self) -> None:
        engine = RuleEngine(RuleRegistry([_rule("w", RuleSeverity.WARNING), _rule("e", RuleSeverity.ERROR)]))
        results = engine.run(_ctx())
        assert {r.rule_id for r in results} == {"w", "e"}

    def test_empty_registry(self) -> None:
        assert RuleEngine(RuleRegistry()).run(_ctx()) == []

    def test_absent_command_yields_nothing(self) -> None:
        engine = RuleEngine(RuleRegistry([_rule("w", RuleSeverity.WARNING)]))
        assert engine.run(_ctx(None)) == []

    def test_severity_sort_is_stable(self) -> None:
        registry = RuleRegistry(
            [
                _rule("i1", RuleSeverity.INFO),
                _rule("e1", RuleSeverity.ERROR),
                _rule("w1", RuleSeverity.WARNING),
                _rule("e2", RuleSeverity.ERROR),
            ]
        )
        results = RuleEngine(registry).run(_ctx())
        assert [r.rule_id for r in results] == ["e1", "e2", "w1", "i1"]

    def test_deterministic(self) -> None:
        registry = RuleRegistry(
            [_rule(f"r{i}", RuleSeverity(i % 3)) for i in range(9)]
        )
        engine = RuleEngine(registry)
        assert engine.run(_ctx()) == engine.run(_ctx())

    def test_disabled_rule_never_produces_result(self) -> None:
        registry = RuleRegistry([_rule("off", RuleSeverity.ERROR, enabled=False), _rule("on", RuleSeverity.INFO)])
        assert [r.rule_id for r in RuleEngine(registry).run(_ctx())] == ["on"]

    def test_rule_ids_filter(self) -> None:
        registry = RuleRegistry([_rule("a", RuleSeverity.INFO), _rule("b", RuleSeverity.INFO)])
        assert [r.rule_id for r in RuleEngine(registry).run(_ctx(), {"b"})] == ["b"]

    def test_throwing_rule_does_not_abort(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = RuleRegistry(
            [_rule("before", RuleSeverity.WARNING), _ExplodingRule(), _rule("after", RuleSeverity.INFO)]
        )
        results = RuleEngine(registry).run(_ctx())
        assert [r.rule_id for r in results] == ["before", "after"]
        assert "explodes" in caplog.text
        assert "predicate bug" in caplog.text

    def test_non_result_return_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = RuleRegistry([_WrongTypeRule(), _rule("ok", RuleSeverity.INFO)])
        results = RuleEngine(registry).run(_ctx())
        assert [r.rule_id for r in results] == ["ok"]
        assert "wrong-type" in caplog.text

    def test_async_rules_awaited_and_sorted_after_collection(self) -> None:
        slow = _AsyncRule("async-error", RuleSeverity.ERROR)
        registry = RuleRegistry([_rule("sync-info", RuleSeverity.INFO), slow])
        results = RuleEngine(registry).run(_ctx())
        assert [r.rule_id for r in results] == ["async-error", "sync-info"]
        assert slow.calls == 1

    def test_evaluate_inside_event_loop(self) -> None:
        engine = RuleEngine(RuleRegistry([_AsyncRule("a", RuleSeverity.WARNING)]))

        async def main() -> list[EvaluationResult]:
            return await engine.evaluate(_ctx())

        assert [r.rule_id for r in asyncio.run(main())] == ["a"]

    def test_default_registry_loads(self) -> None:
        engine = RuleEngine()
        assert len(engine.registry) == len(BUILTIN_RULES)


class TestBuiltinScenarios:
    def _run(self, command: str) -> list[EvaluationResult]:
        engine = RuleEngine()
        ctx = RuleContext.from_command(command, env={}, cwd="/")
        return engine.run(ctx, engine.registry.rule_ids(project=False))

    def test_rm_rf_warns_with_trash(self) -> None:
        results = self._run("rm -rf ./build")
        assert [(r.rule_id, r.action) for r in results] == [("safe-rm-intercept", Action.WARN)]
        assert "trash" in (results[0].suggestion or "")

    def test_git_restore_dot_blocks(self) -> None:
        results = self._run("git restore .")
        assert len(results) == 1
        assert results[0].action == Action.BLOCK
        assert results[0].bypass_flag

    def test_ls_only_gets_tool_suggestion(self) -> None:
        results = self._run("ls -la")
        assert [(r.rule_id, r.action) for r in results] == [("tool-matrix-ls-to-eza", Action.ALLOW)]

    def test_project_rules_without_a_command(self) -> None:
        engine = RuleEngine()
        ctx = RuleContext.for_project(env={"PATH": ""}, cwd="/")
        results = engine.run(ctx, engine.registry.rule_ids(project=True))
        assert [(r.rule_id, r.action) for r in results] == [
            ("safe-rm-trash-installed", Action.ALLOW)
        ]
        assert "trash-cli" in (results[0].suggestion or "")


class TestGate:
    def _result(self, action: Action) -> EvaluationResult:
        return EvaluationResult(action=action, rule_id="x", message="m", severity=RuleSeverity.INFO)

    def test_default_profile_fails_on_block(self) -> None:
        config = ProfileConfig(name="default", fail_on=Action.BLOCK)
        engine = RuleEngine(RuleRegistry())
        assert engine.check_gate([self._result(Action.BLOCK)], config) is True
        assert engine.check_gate([self._result(Action.WARN)], config) is False
        assert engine.exit_code([self._result(Action.BLOCK)], config) == 1
        assert engine.exit_code([self._result(Action.WARN)], config) == 0

    def test_strict_profile_fails_on_warn(self) -> None:
        config = ProfileConfig(name="strict", fail_on=Action.WARN)
        engine = RuleEngine(RuleRegistry())
        assert engine.check_gate([self._result(Action.WARN)], config) is True
        assert engine.check_gate([self._result(Action.ALLOW)], config) is False

    def test_permissive_never_fails(self) -> None:
        config = ProfileConfig(name="permissive", fail_on=None)
        engine = RuleEngine(RuleRegistry())
        assert engine.check_gate([self._result(Action.BLOCK)], config) is False

    def test_empty_results(self) -> None:
        config = ProfileConfig(name="strict", fail_on=Action.ALLOW)
        assert RuleEngine(RuleRegistry()).check_gate([], config) is False


class TestConvenienceWrappers:
    """Verify check_command() and check_gate() in pi_guardrails.rules."""

    def test_check_command(self) -> None:
        from pi_guardrails.rules import check_command

        results = check_command("git restore .")
        assert [r.action for r in results] == [Action.BLOCK]

    def test_check_command_with_bypass(self) -> None:
        from pi_guardrails.rules import check_command

        results = check_command("git restore .", bypass_flags=("--i-know-what-im-doing",))
        assert [r.action for r in results] == [Action.WARN]

    def test_check_gate_wrapper(self) -> None:
        from pi_guardrails.rules import check_gate

        profile = ProfileConfig(name="default", fail_on=Action.BLOCK)
        blocked = EvaluationResult(action=Action.BLOCK, rule_id="x", message="m", severity=RuleSeverity.ERROR)
        assert check_gate([blocked], profile) is True
        assert check_gate([], profile) is False
