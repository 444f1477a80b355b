# SPDX-License-Identifier: MIT
"""Package entry point: run the guardrails CLI via `python -m pi_guardrails`."""

import sys

from pi_guardrails.cli import main

if __name__ == "__main__":
    sys.exit(main())
