"""prworktree command-line interface.

Commands publish their results as ``key=value`` outputs (to ``$GITHUB_OUTPUT``
when set) and exit non-zero only for ``error``/``fail`` results.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Annotated, Optional

import typer

from . import __version__
from . import log as prworktree_log
from .commands import check_rate_limit as check_rate_limit_cmd
from .commands import create_pr as create_pr_cmd
from .commands import remove_worktree as remove_worktree_cmd
from .commands import validate_branches as validate_branches_cmd

app = typer.Typer(
    help="Remove git worktrees and create or update pull requests idempotently.",
    add_completion=False,
    no_args_is_help=True,
)


def _validate_log_level(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not prworktree_log.is_level_name(value):
        choices = ", ".join(prworktree_log.LEVEL_NAMES)
        raise typer.BadParameter(f"expected one of: {choices}")
    return value.strip().lower()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"prworktree {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="Log level: trace, debug, info, success, warning or error.",
            callback=_validate_log_level,
        ),
    ] = None,
    no_color: Annotated[
        bool, typer.Option("--no-color", help="Disable colorized output.")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Global options."""
    if log_level is not None:
        prworktree_log.set_level(log_level)
    if no_color:
        prworktree_log.set_no_color(True)


@app.command("remove-worktree")
def remove_worktree(
    path: Annotated[
        Optional[str],
        typer.Option("--path", help="Worktree path; auto-detected when omitted."),
    ] = None,
    base_branch: Annotated[
        Optional[str],
        typer.Option("--base-branch", help="Base branch excluded from auto-detection."),
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Remove even with uncommitted changes.")
    ] = False,
) -> None:
    """Remove the worktree bound to a branch."""
    remove_worktree_cmd.remove_worktree(
        SimpleNamespace(path=path, base_branch=base_branch, force=force)
    )


@app.command("create-pr")
def create_pr(
    base: Annotated[str, typer.Argument(help="Base branch.")],
    head: Annotated[str, typer.Argument(help="Head (PR) branch.")],
    title: Annotated[str, typer.Argument(help="Pull request title.")],
    body: Annotated[str, typer.Argument(help="Pull request body.")],
    labels: Annotated[
        Optional[list[str]],
        typer.Option("--label", help="Label to add; repeatable, comma lists allowed."),
    ] = None,
    merge_method: Annotated[
        Optional[str],
        typer.Option("--merge-method", help="Auto-merge method: merge, squash, rebase, never."),
    ] = None,
    repo: Annotated[
        Optional[str],
        typer.Option("--repo", help="GitHub repository (owner/name)."),
    ] = None,
) -> None:
    """Create or update the pull request for HEAD -> BASE."""
    create_pr_cmd.create_pr(
        SimpleNamespace(
            base=base,
            head=head,
            title=title,
            body=body,
            labels=labels or [],
            merge_method=merge_method,
            repo=repo,
        )
    )


@app.command("check-rate-limit")
def check_rate_limit(
    warning_threshold: Annotated[
        Optional[int],
        typer.Option("--warning-threshold", min=1, help="Warn below this many calls."),
    ] = None,
) -> None:
    """Check the remaining GitHub API quota."""
    check_rate_limit_cmd.check_rate_limit(
        SimpleNamespace(warning_threshold=warning_threshold)
    )


@app.command("validate-branches")
def validate_branches(
    base: Annotated[str, typer.Argument(help="Base branch.")] = "",
    head: Annotated[str, typer.Argument(help="Head (PR) branch.")] = "",
) -> None:
    """Check that both branches exist on the remote and differ."""
    validate_branches_cmd.validate_branches(SimpleNamespace(base=base, head=head))


def main() -> None:
    """Console-script entry point."""
    app()
