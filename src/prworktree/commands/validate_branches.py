"""Validate that a base/head branch pair exists on the remote."""

from __future__ import annotations

from pathlib import Path

from .. import config
from ..branches import validate_branches as run_validation
from ..outputs import write_outputs
from ..remote import GitRemote


def validate_branches(args: object) -> None:
    settings = config.load_settings()
    result = run_validation(
        GitRemote(Path.cwd(), remote=settings.remote, git_path=settings.git_path),
        getattr(args, "base", None),
        getattr(args, "head", None),
        timeout=settings.timeouts.ls_remote,
    )
    write_outputs(result.outputs())
    if result.exit_code:
        raise SystemExit(result.exit_code)
