# SPDX-License-Identifier: MIT
"""Bypass flags: the host's post-evaluation step for rules that require them.

Rules only declare their flag. Whether the caller actually supplied it is
decided here, after the engine has produced its results.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Collection

from pi_guardrails.rules.base import Action, EvaluationResult

log = logging.getLogger(__name__)


def is_bypassed(result: EvaluationResult, supplied_flags: Collection[str]) -> bool:
    return result.bypass_flag is not None and result.bypass_flag in supplied_flags


def apply_bypass(
    results: list[EvaluationResult], supplied_flags: Collection[str]
) -> list[EvaluationResult]:
    """Downgrade BLOCK results whose bypass flag was supplied to WARN.

    Order, severity and every other field are preserved. Flags that do not
    belong to any result have no effect.
    """
    adjusted: list[EvaluationResult] = []
    for result in results:
        if result.action == Action.BLOCK and is_bypassed(result, supplied_flags):
            log.info("Rule %s bypassed with %s", result.rule_id, result.bypass_flag)
            result = dataclasses.replace(result, action=Action.WARN)
        adjusted.append(result)
    return adjusted
