# SPDX-License-Identifier: MIT
"""Profile and environment configuration for the guardrails engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pi_guardrails.rules.base import Action

PROFILE_ENV = "PI_GUARDRAILS_PROFILE"
DISABLE_ENV = "PI_GUARDRAILS_DISABLE"
LOG_LEVEL_ENV = "PI_GUARDRAILS_LOG_LEVEL"


@dataclass(frozen=True)
class ProfileConfig:
    """Gate configuration. ``fail_on=None`` never fails."""

    name: str
    fail_on: Action | None


PROFILES: dict[str, ProfileConfig] = {
    "default": ProfileConfig(name="default", fail_on=Action.BLOCK),
    "strict": ProfileConfig(name="strict", fail_on=Action.WARN),
    "permissive": ProfileConfig(name="permissive", fail_on=None),
}


def load_profile(cli_profile: str | None = None) -> ProfileConfig:
    """Load profile config with CLI > env > default priority.

    Args:
        cli_profile: Profile name from CLI --profile flag (highest priority).

    Returns:
        ProfileConfig for the resolved profile.

    Raises:
        ValueError: If the profile name is not recognized.
    """
    name = cli_profile or os.environ.get(PROFILE_ENV, "default")
    if name not in PROFILES:
        msg = f"Unknown profile: {name!r}. Valid profiles: {sorted(PROFILES.keys())}"
        raise ValueError(msg)
    return PROFILES[name]


def split_ids(value: str | None) -> frozenset[str]:
    """Parse a comma-separated id list, ignoring blanks."""
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def disabled_rules(cli_value: str | None = None) -> frozenset[str]:
    """Rule ids to switch off, from the CLI or PI_GUARDRAILS_DISABLE."""
    return split_ids(cli_value if cli_value is not None else os.environ.get(DISABLE_ENV))


def log_level(verbose: bool = False) -> int:
    """Logging level: --verbose > PI_GUARDRAILS_LOG_LEVEL > WARNING. Unknown names fall back to WARNING."""
    if verbose:
        return logging.DEBUG
    name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    return logging.getLevelNamesMapping().get(name, logging.WARNING)
