# SPDX-License-Identifier: MIT
"""pi-guardrails command line: check, verify, list, and fix.

Usage:
    pi-guardrails check [--profile P] [--rules a,b] [--bypass=FLAG] -- rm -rf ./build
    pi-guardrails verify [--profile P]
    pi-guardrails list
    pi-guardrails fix [--dry-run] -- grep -r TODO src

Bypass flags start with "--", so pass them attached: --bypass=--i-know-what-im-doing.

Environment variables:
    PI_GUARDRAILS_PROFILE    gate profile: default | strict | permissive
    PI_GUARDRAILS_DISABLE    comma-separated rule ids to switch off
    PI_GUARDRAILS_LOG_LEVEL  logging level name (default: WARNING)

Exit codes: 0 clean, 1 gate failed (or a fix failed), 2 usage/config error.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pi_guardrails.fixes import apply_fixes, collect_violations, suggestion_fixer
from pi_guardrails.report import format_fix_summary, format_results, format_rule_list
from pi_guardrails.rules.bypass import apply_bypass
from pi_guardrails.rules.config import PROFILES, disabled_rules, load_profile, log_level, split_ids
from pi_guardrails.rules.context import RuleContext
from pi_guardrails.rules.engine import RuleEngine
from pi_guardrails.rules.registry import default_registry

log = logging.getLogger(__name__)


def _command_tokens(parser: argparse.ArgumentParser, tokens: list[str]) -> list[str]:
    if tokens and tokens[0] == "--":
        tokens = tokens[1:]
    if not tokens:
        parser.error("a command to check is required")
    return tokens


def _context(tokens: list[str]) -> RuleContext:
    # A single argument is a whole command line ("rm -rf x"); several are argv
    if len(tokens) == 1:
        return RuleContext.from_command(tokens[0])
    return RuleContext.from_command(tokens)


def _cmd_check(args: argparse.Namespace) -> int:
    try:
        profile = load_profile(args.profile)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    engine = RuleEngine(default_registry(disabled_rules(args.disable)))
    ctx = _context(_command_tokens(args.parser, args.command))
    rule_ids = split_ids(args.rules) or engine.registry.rule_ids(project=False)
    results = apply_bypass(engine.run(ctx, rule_ids), args.bypass)
    print(format_results(results))
    code = engine.exit_code(results, profile)
    log.debug("profile=%s results=%d exit=%d", profile.name, len(results), code)
    return code


def _cmd_verify(args: argparse.Namespace) -> int:
    try:
        profile = load_profile(args.profile)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    engine = RuleEngine(default_registry(disabled_rules(args.disable)))
    results = engine.run(RuleContext.for_project(), engine.registry.rule_ids(project=True))
    print(format_results(results))
    return engine.exit_code(results, profile)


def _cmd_list(args: argparse.Namespace) -> int:
    registry = default_registry(disabled_rules(args.disable))
    print("Registered guardrail rules:\n")
    print(format_rule_list(registry))
    return 0


def _cmd_fix(args: argparse.Namespace) -> int:
    registry = default_registry(disabled_rules(args.disable))
    engine = RuleEngine(registry)
    ctx = _context(_command_tokens(args.parser, args.command))
    results = engine.run(ctx, registry.rule_ids(project=False))
    violations = collect_violations(results, registry)
    rewrites: list[str] = []
    summary = apply_fixes(
        violations,
        default_fixer=suggestion_fixer(rewrites.append),
        dry_run=args.dry_run,
    )
    print(format_fix_summary(summary))
    for command in rewrites:
        print(f"\n{command}")
    return 1 if summary.failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pi-guardrails", description="Guardrails for safe development practices"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    parser.add_argument(
        "--disable",
        default=None,
        help="Comma-separated rule ids to switch off (overrides PI_GUARDRAILS_DISABLE)",
    )
    sub = parser.add_subparsers(dest="subcommand", required=True)

    check = sub.add_parser("check", help="Check a command against the guardrails")
    check.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default=None,
        help="Gate profile (overrides PI_GUARDRAILS_PROFILE env var)",
    )
    check.add_argument("--rules", default=None, help="Only run these comma-separated rule ids")
    check.add_argument(
        "--bypass",
        action="append",
        default=[],
        metavar="FLAG",
        help="Bypass flag for a rule that requires one, attached with =: --bypass=--force-<id> (repeatable)",
    )
    check.add_argument("command", nargs=argparse.REMAINDER, help="Command to check")
    check.set_defaults(handler=_cmd_check, parser=check)

    verify = sub.add_parser("verify", help="Check project state: required files, env vars, installed tools")
    verify.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default=None,
        help="Gate profile (overrides PI_GUARDRAILS_PROFILE env var)",
    )
    verify.set_defaults(handler=_cmd_verify, parser=verify)

    listing = sub.add_parser("list", help="List the registered rules")
    listing.set_defaults(handler=_cmd_list, parser=listing)

    fix = sub.add_parser("fix", help="Rewrite a command using the rules' suggestions")
    fix.add_argument("-n", "--dry-run", action="store_true", help="Show what would be fixed")
    fix.add_argument("command", nargs=argparse.REMAINDER, help="Command to fix")
    fix.set_defaults(handler=_cmd_fix, parser=fix)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=log_level(args.verbose),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return args.handler(args)
