"""Create or update the pull request for a branch pair."""

from __future__ import annotations

from pathlib import Path

from .. import config
from ..io import die
from ..outputs import write_outputs
from ..pull_requests import CreateOrUpdatePullRequestService, PullRequestRequest
from ..remote import GithubClient, GitRemote
from ..services import ServiceFailure


def create_pr(args: object) -> None:
    """Reconcile the pull request and publish its identifiers.

    Args:
        args: CLI namespace with ``base``, ``head``, ``title``, ``body``,
            ``labels``, ``merge_method`` and ``repo``.

    Returns:
        None. Fatal failures exit 1 without emitting identifiers.
    """
    settings = config.load_settings()
    repo_dir = Path.cwd()
    service = CreateOrUpdatePullRequestService(
        client=GithubClient(
            gh_path=settings.gh_path,
            repo=getattr(args, "repo", None) or None,
            cwd=repo_dir,
        ),
        timeouts=settings.timeouts,
        origin=GitRemote(repo_dir, remote=settings.remote, git_path=settings.git_path),
    )
    request = PullRequestRequest(
        base=getattr(args, "base", "") or "",
        head=getattr(args, "head", "") or "",
        title=getattr(args, "title", "") or "",
        body=getattr(args, "body", "") or "",
        labels=tuple(getattr(args, "labels", None) or ()),
        merge_method=getattr(args, "merge_method", None),
    )
    try:
        outcome = service(request)
    except ServiceFailure as exc:
        die(exc.message, hint=exc.recovery_hint)
        return
    write_outputs(outcome.outputs())
