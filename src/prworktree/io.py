"""User-facing console output for command results and fatal errors."""

from __future__ import annotations

import sys

from . import log as prworktree_log


def say(message: str) -> None:
    """Write one line to stdout, unfiltered by the log level.

    Example:
        >>> say("status=success")
        status=success
    """
    print(message)


def die(message: str, code: int = 1, *, hint: str | None = None) -> None:
    """Log ``message`` as an error, print ``hint`` if given, and exit with ``code``."""
    prworktree_log.error(f"error: {message}")
    if hint:
        print(f"hint: {hint}", file=sys.stderr)
    sys.exit(code)
