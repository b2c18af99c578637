"""Bounded-time adapters for the git remote and the GitHub CLI.

Every method issues exactly one command with an explicit time budget and
returns a ``BoundedResult``; none of them raise for command-level failures.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

from . import exec as exec_util
from . import git
from .models import (
    MergeMethod,
    PullRequestListEntry,
    PullRequestView,
    RateLimitResponse,
    RateLimitSnapshot,
    RepoView,
)


def _parse_rate_limit(result: exec_util.CommandResult) -> RateLimitSnapshot:
    payload = exec_util.parse_json_model(
        result, model_type=RateLimitResponse, context="gh api rate_limit"
    )
    reset_time = None
    reset = payload.rate.reset
    if reset is not None and reset > 0:
        try:
            reset_time = datetime.fromtimestamp(reset, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            reset_time = None
    return RateLimitSnapshot(
        remaining=payload.rate.remaining,
        limit=payload.rate.limit,
        reset_time=reset_time,
    )


def _parse_first_pr_number(result: exec_util.CommandResult) -> int | None:
    entries = exec_util.parse_json_model_list(
        result, model_type=PullRequestListEntry, context="gh pr list"
    )
    if not entries:
        return None
    return entries[0].number


def _parse_created_url(result: exec_util.CommandResult) -> str:
    lines = [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""


def _parse_pr_url(result: exec_util.CommandResult) -> str:
    return exec_util.parse_json_model(
        result, model_type=PullRequestView, context="gh pr view"
    ).url.strip()


def _parse_repo_slug(result: exec_util.CommandResult) -> str:
    return exec_util.parse_json_model(
        result, model_type=RepoView, context="gh repo view"
    ).name_with_owner


@dataclass(frozen=True)
class GithubClient:
    """Typed command-boundary adapter for GitHub CLI queries and mutations."""

    gh_path: str = "gh"
    repo: str | None = None
    cwd: Path | None = None
    runner: exec_util.CommandRunner | None = field(default=None, compare=False)

    def _argv(self, args: Sequence[str], *, scoped: bool = True) -> tuple[str, ...]:
        argv = [self.gh_path, *args]
        if scoped and self.repo:
            argv.extend(["--repo", self.repo])
        return tuple(argv)

    def _call(
        self,
        args: Sequence[str],
        *,
        operation: str,
        timeout: float,
        parser: Callable[[exec_util.CommandResult], object],
        scoped: bool = True,
    ) -> exec_util.BoundedResult:
        spec = exec_util.CommandSpec(
            request=exec_util.CommandRequest(
                argv=self._argv(args, scoped=scoped),
                cwd=self.cwd,
                timeout_seconds=timeout,
            ),
            parser=parser,
            context=operation,
        )
        return exec_util.run_bounded(spec, operation=operation, runner=self.runner)

    def rate_limit(self, *, timeout: float) -> exec_util.BoundedResult[RateLimitSnapshot]:
        return self._call(
            ["api", "rate_limit"],
            operation="gh api rate_limit",
            timeout=timeout,
            parser=_parse_rate_limit,
            scoped=False,
        )

    def find_open_pr(
        self, head: str, base: str, *, timeout: float
    ) -> exec_util.BoundedResult[int | None]:
        """Return the number of the open PR for ``head`` -> ``base``, if any."""
        return self._call(
            [
                "pr",
                "list",
                "--head",
                head,
                "--base",
                base,
                "--state",
                "open",
                "--json",
                "number",
            ],
            operation="gh pr list",
            timeout=timeout,
            parser=_parse_first_pr_number,
        )

    def create_pr(
        self, base: str, head: str, title: str, body: str, *, timeout: float
    ) -> exec_util.BoundedResult[str]:
        """Create a PR and return the URL gh prints on success."""
        with tempfile.TemporaryDirectory(prefix="prworktree-") as tmp:
            body_file = _write_body_file(Path(tmp), body)
            return self._call(
                [
                    "pr",
                    "create",
                    "--base",
                    base,
                    "--head",
                    head,
                    "--title",
                    title,
                    "--body-file",
                    str(body_file),
                ],
                operation="gh pr create",
                timeout=timeout,
                parser=_parse_created_url,
            )

    def edit_pr(
        self, number: int, title: str, body: str, *, timeout: float
    ) -> exec_util.BoundedResult[None]:
        with tempfile.TemporaryDirectory(prefix="prworktree-") as tmp:
            body_file = _write_body_file(Path(tmp), body)
            return self._call(
                [
                    "pr",
                    "edit",
                    str(number),
                    "--title",
                    title,
                    "--body-file",
                    str(body_file),
                ],
                operation="gh pr edit",
                timeout=timeout,
                parser=exec_util.ignore_output,
            )

    def view_pr_url(self, number: int, *, timeout: float) -> exec_util.BoundedResult[str]:
        return self._call(
            ["pr", "view", str(number), "--json", "url"],
            operation="gh pr view",
            timeout=timeout,
            parser=_parse_pr_url,
        )

    def repo_slug(self, *, timeout: float) -> exec_util.BoundedResult[str]:
        args = ["repo", "view"]
        if self.repo:
            args.append(self.repo)
        args.extend(["--json", "nameWithOwner"])
        return self._call(
            args,
            operation="gh repo view",
            timeout=timeout,
            parser=_parse_repo_slug,
            scoped=False,
        )

    def add_labels(
        self, number: int, labels: Sequence[str], *, timeout: float
    ) -> exec_util.BoundedResult[None]:
        args = ["pr", "edit", str(number)]
        for label in labels:
            args.extend(["--add-label", label])
        return self._call(
            args,
            operation="gh pr edit --add-label",
            timeout=timeout,
            parser=exec_util.ignore_output,
        )

    def enable_auto_merge(
        self, number: int, method: MergeMethod, *, timeout: float
    ) -> exec_util.BoundedResult[None]:
        if method is MergeMethod.NEVER:
            raise ValueError("auto-merge cannot be enabled with merge method 'never'")
        return self._call(
            ["pr", "merge", str(number), "--auto", f"--{method.value}"],
            operation="gh pr merge --auto",
            timeout=timeout,
            parser=exec_util.ignore_output,
        )


def _write_body_file(directory: Path, body: str) -> Path:
    path = directory / "body.md"
    path.write_text(f"{body}\n", encoding="utf-8")
    return path


def _parse_head_refs(result: exec_util.CommandResult) -> frozenset[str]:
    refs: set[str] = set()
    for line in (result.stdout or "").splitlines():
        parts = line.split()
        if len(parts) >= 2:
            refs.add(parts[1])
    return frozenset(refs)


@dataclass(frozen=True)
class GitRemote:
    """Bounded queries against a repository's git remote."""

    repo_dir: Path
    remote: str = "origin"
    git_path: str = "git"
    runner: exec_util.CommandRunner | None = field(default=None, compare=False)

    def head_refs(self, *, timeout: float) -> exec_util.BoundedResult[frozenset[str]]:
        """Return the fully-qualified ``refs/heads/*`` names on the remote."""
        spec = exec_util.CommandSpec(
            request=exec_util.CommandRequest(
                argv=tuple(
                    git.git_command(
                        ["-C", str(self.repo_dir), "ls-remote", "--heads", self.remote],
                        git_path=self.git_path,
                    )
                ),
                timeout_seconds=timeout,
            ),
            parser=_parse_head_refs,
            context="git ls-remote",
        )
        return exec_util.run_bounded(spec, operation="git ls-remote", runner=self.runner)

    def url(self) -> str | None:
        return git.git_remote_url(
            self.repo_dir, self.remote, git_path=self.git_path, runner=self.runner
        )
