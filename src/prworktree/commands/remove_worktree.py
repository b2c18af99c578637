"""Remove the worktree bound to a branch."""

from __future__ import annotations

from pathlib import Path

from .. import config
from ..outputs import write_outputs
from ..worktrees import RemovalRequest, RemoveWorktreeService


def remove_worktree(args: object) -> None:
    """Remove a worktree and publish the outcome.

    Args:
        args: CLI namespace with ``path``, ``base_branch`` and ``force``.

    Returns:
        None. Exits non-zero when the outcome status is ``error``.
    """
    settings = config.load_settings()
    request = RemovalRequest(
        path=getattr(args, "path", None),
        base_branch=getattr(args, "base_branch", None),
        force=bool(getattr(args, "force", False)),
        repo_dir=Path.cwd(),
    )
    outcome = RemoveWorktreeService(
        default_base_branch=settings.default_base_branch,
        git_path=settings.git_path,
    )(request)
    write_outputs(outcome.outputs())
    if outcome.exit_code:
        raise SystemExit(outcome.exit_code)
