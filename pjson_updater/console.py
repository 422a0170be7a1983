"""Terminal output helpers.

Progress goes to stdout as step headers followed by indented detail lines;
errors go to stderr.
"""

from __future__ import annotations

import sys


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of an update in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def detail(msg: str) -> None:
    """Print an indented progress line under the current step."""
    print(f"  {msg}")


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1.

    Use for unrecoverable errors that should halt the run.
    """
    print(msg, file=sys.stderr)
    sys.exit(1)
