"""Structured ``key=value`` outputs for calling workflows."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Mapping

from .io import say

GITHUB_OUTPUT_ENV = "GITHUB_OUTPUT"


def format_output(key: str, value: str, *, delimiter: str | None = None) -> str:
    """Render one output entry, using heredoc form for multi-line values.

    Example:
        >>> format_output("status", "ok")
        'status=ok\\n'
        >>> format_output("list", "a\\nb", delimiter="EOF")
        'list<<EOF\\na\\nb\\nEOF\\n'
    """
    if "\n" not in value:
        return f"{key}={value}\n"
    marker = delimiter or f"ghadelimiter_{uuid.uuid4().hex}"
    return f"{key}<<{marker}\n{value}\n{marker}\n"


def write_outputs(
    outputs: Mapping[str, str], *, env: Mapping[str, str] | None = None
) -> None:
    """Append outputs to ``$GITHUB_OUTPUT``, or print them when it is unset."""
    active_env = os.environ if env is None else env
    target = active_env.get(GITHUB_OUTPUT_ENV, "").strip()
    rendered = "".join(format_output(key, value) for key, value in outputs.items())
    if not target:
        for line in rendered.splitlines():
            say(line)
        return
    with Path(target).open("a", encoding="utf-8") as fh:
        fh.write(rendered)
