# SPDX-License-Identifier: MIT
"""Built-in rule sets: safe-rm, safe-git, tool-matrix."""

from __future__ import annotations

from pi_guardrails.rules.base import TOOL_INSTALLED, RuleDefinition, RuleKind, RuleSeverity

# --- safe-rm ---

SAFE_RM_INTERCEPT = RuleDefinition(
    id="safe-rm-intercept",
    kind=RuleKind.COMMAND_PATTERN,
    pattern=r"^rm\s+-rf?",
    severity=RuleSeverity.WARNING,
    message="Detected 'rm' command. Consider using 'trash' for safer deletion.",
    suggestion="trash {{args}}",
    whitelist=frozenset({"/tmp", "/var/tmp"}),
    fixable=True,
)

SAFE_RM_TRASH_INSTALLED = RuleDefinition(
    id="safe-rm-trash-installed",
    kind=RuleKind.TOOL_PREFERENCE,
    condition=TOOL_INSTALLED,
    preferred="trash",
    severity=RuleSeverity.WARNING,
    message="'trash' is not installed, so safe-rm suggestions cannot be followed.",
    suggestion="Install trash-cli: npm install -g trash-cli  or  brew install trash",
)

# --- safe-git ---

SAFE_GIT_RESTORE_DOT = RuleDefinition(
    id="safe-git-restore-dot",
    kind=RuleKind.COMMAND_PATTERN,
    pattern=r"^git\s+restore\s+\.$",
    severity=RuleSeverity.ERROR,
    message=(
        "'git restore .' will discard ALL changes, including files you didn't modify. "
        "This is dangerous in team environments."
    ),
    suggestion=(
        "git restore <specific-file>  or  "
        "git status --short | grep '^ M' | awk '{print $2}' | xargs git restore"
    ),
    require_explicit=True,
    bypass_flag="--i-know-what-im-doing",
)

SAFE_GIT_FORCE_PUSH = RuleDefinition(
    id="safe-git-force-push",
    kind=RuleKind.COMMAND_PATTERN,
    pattern=r"^git\s+push\b.*\s(?:--force(?!-with-lease)|-f)(?:\s|$)",
    severity=RuleSeverity.WARNING,
    message="Force push can overwrite others' work. Consider 'git push --force-with-lease' instead.",
    suggestion="git push --force-with-lease",
    fixable=True,
)

# --- tool-matrix ---

# (rule id, pattern, preferred tool, message)
_TOOL_MAPPINGS: list[tuple[str, str, str, str]] = [
    (
        "tool-matrix-find-to-fd",
        r"^find\s+",
        "fd",
        "Consider using 'fd' instead of 'find' for better performance and usability",
    ),
    (
        "tool-matrix-grep-to-rg",
        r"^grep\s+",
        "rg",
        "Consider using 'rg' (ripgrep) instead of 'grep' for faster search",
    ),
    (
        "tool-matrix-cat-to-bat",
        r"^cat\s+",
        "bat",
        "Consider using 'bat' instead of 'cat' for syntax highlighting",
    ),
    (
        "tool-matrix-ls-to-eza",
        r"^ls\s+",
        "eza",
        "Consider using 'eza' instead of 'ls' for better output",
    ),
]

TOOL_MATRIX: list[RuleDefinition] = [
    RuleDefinition(
        id=rule_id,
        kind=RuleKind.TOOL_PREFERENCE,
        pattern=pattern,
        severity=RuleSeverity.INFO,
        message=message,
        suggestion=f"{preferred} {{{{args}}}}",
        preferred=preferred,
        fixable=True,
    )
    for rule_id, pattern, preferred, message in _TOOL_MAPPINGS
]

BUILTIN_RULES: list[RuleDefinition] = [
    SAFE_RM_INTERCEPT,
    SAFE_RM_TRASH_INSTALLED,
    SAFE_GIT_RESTORE_DOT,
    SAFE_GIT_FORCE_PUSH,
    *TOOL_MATRIX,
]
