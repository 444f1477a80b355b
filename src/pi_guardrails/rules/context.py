# SPDX-License-Identifier: MIT
"""Rule context: the command/args/env/cwd snapshot presented to each rule."""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType


def _freeze_env(env: Mapping[str, str] | None) -> Mapping[str, str] | None:
    if env is None:
        return None
    return MappingProxyType(dict(env))


@dataclass(frozen=True)
class RuleContext:
    """Input snapshot for one evaluation. Never mutated while rules run."""

    command: str | None = None
    args: tuple[str, ...] = ()
    env: Mapping[str, str] | None = None
    cwd: str | None = None

    def __post_init__(self) -> None:
        # Snapshot mutable inputs so callers can keep editing their own copies
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(self, "env", _freeze_env(self.env))

    @property
    def args_text(self) -> str:
        """Args joined by single spaces ("" when there are none)."""
        return " ".join(self.args)

    @classmethod
    def for_project(
        cls, *, env: Mapping[str, str] | None = None, cwd: str | None = None
    ) -> RuleContext:
        """A command-less context for project-state rules (current process by default)."""
        return cls(
            env=os.environ if env is None else env,
            cwd=os.getcwd() if cwd is None else cwd,
        )

    @classmethod
    def from_command(
        cls,
        command: str | Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> RuleContext:
        """Build a context the way the CLI host does.

        A string is tokenized with shlex; a sequence is taken as argv. ``args``
        is every token after the program name. ``env`` and ``cwd`` default to
        the current process.
        """
        if isinstance(command, str):
            try:
                tokens = shlex.split(command)
            except ValueError:
                # Unbalanced quotes: fall back to whitespace tokens
                tokens = command.split()
            text = command.strip()
        else:
            tokens = list(command)
            text = " ".join(tokens)
        return cls(
            command=text or None,
            args=tuple(tokens[1:]),
            env=os.environ if env is None else env,
            cwd=os.getcwd() if cwd is None else cwd,
        )
