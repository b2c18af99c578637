"""Idempotent removal of a git worktree bound to a branch.

``remove_worktree`` resolves the target (explicit path or auto-detection),
runs a short-circuiting validation pipeline and removes the worktree. Every
path through it ends in exactly one ``RemovalOutcome`` whose status is
derived from its reason through ``REASON_STATUS``; nothing is raised.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping, Sequence

from . import exec as exec_util
from . import git
from . import log as prworktree_log
from .services import BaseService

DEFAULT_BASE_BRANCH = "main"
BASE_REF_ENV = "GITHUB_BASE_REF"


class RemovalStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


class RemovalReason(str, Enum):
    """Closed set of removal outcomes."""

    NO_PATH = "no-path"
    ALREADY_REMOVED = "already-removed"
    NO_WORKTREES = "no-worktrees"
    MULTIPLE = "multiple"
    DISCOVERY_FAILED = "discovery-failed"
    NOT_REGISTERED = "not-registered"
    MISSING_MARKER = "missing-marker"
    INVALID_WORKTREE = "invalid-worktree"
    UNCOMMITTED = "uncommitted"
    REMOVAL_FAILED = "removal-failed"
    REMOVED = "removed"
    REMOVED_DIRTY = "removed-dirty"


REASON_STATUS: dict[RemovalReason, RemovalStatus] = {
    RemovalReason.NO_PATH: RemovalStatus.SKIPPED,
    RemovalReason.ALREADY_REMOVED: RemovalStatus.SKIPPED,
    RemovalReason.NO_WORKTREES: RemovalStatus.SKIPPED,
    RemovalReason.MULTIPLE: RemovalStatus.SKIPPED,
    RemovalReason.DISCOVERY_FAILED: RemovalStatus.ERROR,
    RemovalReason.NOT_REGISTERED: RemovalStatus.ERROR,
    RemovalReason.MISSING_MARKER: RemovalStatus.ERROR,
    RemovalReason.INVALID_WORKTREE: RemovalStatus.ERROR,
    RemovalReason.UNCOMMITTED: RemovalStatus.ERROR,
    RemovalReason.REMOVAL_FAILED: RemovalStatus.ERROR,
    RemovalReason.REMOVED: RemovalStatus.SUCCESS,
    RemovalReason.REMOVED_DIRTY: RemovalStatus.SUCCESS,
}


@dataclass(frozen=True)
class RemovalOutcome:
    """Single result of a removal attempt.

    Example:
        >>> outcome = RemovalOutcome(RemovalReason.ALREADY_REMOVED, "gone")
        >>> outcome.status.value, outcome.exit_code
        ('skipped', 0)
    """

    reason: RemovalReason
    message: str
    removed_path: Path | None = None
    discovered: tuple[Path, ...] | None = None

    @property
    def status(self) -> RemovalStatus:
        return REASON_STATUS[self.reason]

    @property
    def exit_code(self) -> int:
        return 1 if self.status is RemovalStatus.ERROR else 0

    def outputs(self) -> dict[str, str]:
        outputs = {
            "status": self.status.value,
            "reason": self.reason.value,
            "message": self.message,
        }
        if self.removed_path is not None:
            outputs["removed-path"] = str(self.removed_path)
        if self.discovered is not None:
            outputs["worktree-count"] = str(len(self.discovered))
            outputs["worktree-list"] = "\n".join(str(path) for path in self.discovered)
        return outputs


@dataclass(frozen=True)
class RemovalRequest:
    path: str | None = None
    base_branch: str | None = None
    force: bool = False
    repo_dir: Path = field(default_factory=Path.cwd)


def resolve_base_branch(
    hint: str | None,
    *,
    repo_dir: Path,
    env: Mapping[str, str],
    default: str = DEFAULT_BASE_BRANCH,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> str:
    """Pick the base branch: hint, then ``GITHUB_BASE_REF``, then HEAD, then default."""
    for candidate in (hint, env.get(BASE_REF_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    current = git.git_current_branch(repo_dir, git_path=git_path, runner=runner)
    if current:
        return current
    return default


def candidate_worktrees(
    entries: Sequence[git.WorktreeEntry], base_branch: str
) -> list[git.WorktreeEntry]:
    """Return linked worktrees that are not checked out on ``base_branch``.

    The first entry is the main working tree and is never a candidate.
    """
    base_ref = f"refs/heads/{base_branch}"
    return [entry for entry in entries[1:] if not entry.bare and entry.branch != base_ref]


def discover_worktree(
    repo_dir: Path,
    base_branch: str,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> Path | RemovalOutcome:
    """Return the single removable worktree, or the outcome explaining why not."""
    listed = git.git_worktree_list(repo_dir, git_path=git_path, runner=runner)
    if not listed.ok or listed.value is None:
        return RemovalOutcome(
            RemovalReason.DISCOVERY_FAILED,
            f"Could not list worktrees: {listed.describe()}",
        )
    candidates = candidate_worktrees(listed.value, base_branch)
    discovered = tuple(entry.path for entry in candidates)
    if not candidates:
        return RemovalOutcome(
            RemovalReason.NO_WORKTREES,
            f"No worktrees found other than base branch '{base_branch}'",
            discovered=discovered,
        )
    if len(candidates) > 1:
        return RemovalOutcome(
            RemovalReason.MULTIPLE,
            f"Multiple worktrees found ({len(candidates)}); "
            "specify the worktree path explicitly",
            discovered=discovered,
        )
    prworktree_log.info(f"Auto-detected worktree: {candidates[0].path}")
    return candidates[0].path


def check_path_given(path: str) -> RemovalOutcome | None:
    if not path.strip():
        return RemovalOutcome(RemovalReason.NO_PATH, "No worktree path provided")
    return None


def check_exists(path: Path) -> RemovalOutcome | None:
    if path.is_dir():
        return None
    if path.exists():
        return RemovalOutcome(
            RemovalReason.ALREADY_REMOVED,
            f"Worktree already removed: {path} is not a directory",
        )
    return RemovalOutcome(RemovalReason.ALREADY_REMOVED, f"Worktree already removed: {path}")


def _same_path(left: Path, right: Path) -> bool:
    try:
        return left.resolve() == right.resolve()
    except OSError:
        return left == right


def check_registered(
    path: Path,
    repo_dir: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> RemovalOutcome | None:
    """Require ``path`` to appear in the repository's worktree registry."""
    listed = git.git_worktree_list(repo_dir, git_path=git_path, runner=runner)
    if not listed.ok or listed.value is None:
        return RemovalOutcome(
            RemovalReason.NOT_REGISTERED,
            f"Cannot confirm {path} is a registered worktree: {listed.describe()}",
        )
    if any(_same_path(entry.path, path) for entry in listed.value):
        return None
    return RemovalOutcome(
        RemovalReason.NOT_REGISTERED,
        f"Path is not a registered git worktree: {path} (see `git worktree list`)",
    )


def check_marker(path: Path) -> RemovalOutcome | None:
    """Require the ``.git`` file a linked worktree carries."""
    if not (path / ".git").exists():
        return RemovalOutcome(
            RemovalReason.MISSING_MARKER,
            f"Worktree marker .git is missing in {path}; run `git worktree prune`",
        )
    return None


def check_is_worktree(
    path: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> RemovalOutcome | None:
    if not git.git_is_worktree(path, git_path=git_path, runner=runner):
        return RemovalOutcome(
            RemovalReason.INVALID_WORKTREE,
            f"git does not recognize {path} as a working tree",
        )
    return None


def check_uncommitted(
    path: Path,
    changes: Sequence[str] | None,
    *,
    force: bool,
) -> RemovalOutcome | None:
    """Block a dirty worktree unless ``force`` is set.

    ``changes`` is the ``git status --porcelain`` output, or ``None`` when
    status could not be read.
    """
    if changes is None:
        return RemovalOutcome(
            RemovalReason.INVALID_WORKTREE,
            f"Unable to read git status for {path}",
        )
    if changes and not force:
        return RemovalOutcome(
            RemovalReason.UNCOMMITTED,
            f"Worktree has {len(changes)} uncommitted change(s) in {path}; "
            "commit or stash them, or rerun with force",
        )
    return None


def _absolute(path: str, repo_dir: Path) -> Path:
    candidate = Path(path.strip())
    if candidate.is_absolute():
        return candidate
    return repo_dir / candidate


def remove_worktree(
    request: RemovalRequest,
    *,
    env: Mapping[str, str] | None = None,
    default_base_branch: str = DEFAULT_BASE_BRANCH,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> RemovalOutcome:
    """Remove one worktree and classify the result.

    Args:
        request: Target path (or none for auto-detection), base-branch hint,
            force flag and repository directory.
        env: Environment mapping used for ``GITHUB_BASE_REF``.
        default_base_branch: Base branch when nothing else names one.
        git_path: Optional git executable override.
        runner: Optional command runner.

    Returns:
        The outcome; its status is always ``REASON_STATUS[outcome.reason]``.
    """
    active_env = os.environ if env is None else env
    repo_dir = request.repo_dir
    discovered: tuple[Path, ...] | None = None

    if request.path is None:
        base_branch = resolve_base_branch(
            request.base_branch,
            repo_dir=repo_dir,
            env=active_env,
            default=default_base_branch,
            git_path=git_path,
            runner=runner,
        )
        prworktree_log.debug(f"base branch: {base_branch}")
        found = discover_worktree(repo_dir, base_branch, git_path=git_path, runner=runner)
        if isinstance(found, RemovalOutcome):
            return _report(found)
        target = str(found)
        discovered = (found,)
    else:
        target = request.path

    outcome = _validate_and_remove(
        target, repo_dir, force=request.force, git_path=git_path, runner=runner
    )
    if discovered is not None:
        outcome = RemovalOutcome(
            outcome.reason, outcome.message, outcome.removed_path, discovered
        )
    return _report(outcome)


def _validate_and_remove(
    target: str,
    repo_dir: Path,
    *,
    force: bool,
    git_path: str | None,
    runner: exec_util.CommandRunner | None,
) -> RemovalOutcome:
    blocked = check_path_given(target)
    if blocked is not None:
        return blocked
    path = _absolute(target, repo_dir)

    steps: list[Callable[[], RemovalOutcome | None]] = [
        lambda: check_exists(path),
        lambda: check_registered(path, repo_dir, git_path=git_path, runner=runner),
        lambda: check_marker(path),
        lambda: check_is_worktree(path, git_path=git_path, runner=runner),
    ]
    for step in steps:
        blocked = step()
        if blocked is not None:
            return blocked

    changes = git.git_status_porcelain(path, git_path=git_path, runner=runner)
    blocked = check_uncommitted(path, changes, force=force)
    if blocked is not None:
        return blocked
    dirty = bool(changes)
    if dirty:
        prworktree_log.warning(f"Removing {path} with {len(changes or [])} uncommitted change(s)")

    removed = git.git_worktree_remove(
        repo_dir, path, force=force or dirty, git_path=git_path, runner=runner
    )
    if not removed.ok:
        return RemovalOutcome(
            RemovalReason.REMOVAL_FAILED,
            f"Failed to remove worktree {path}: {removed.describe()}",
        )
    reason = RemovalReason.REMOVED_DIRTY if dirty else RemovalReason.REMOVED
    return RemovalOutcome(reason, f"Removed worktree: {path}", removed_path=path)


def _report(outcome: RemovalOutcome) -> RemovalOutcome:
    if outcome.status is RemovalStatus.ERROR:
        prworktree_log.error(outcome.message)
    elif outcome.status is RemovalStatus.SKIPPED:
        prworktree_log.info(outcome.message)
    else:
        prworktree_log.success(outcome.message)
    return outcome


@dataclass
class RemoveWorktreeService(BaseService[RemovalRequest, RemovalOutcome]):
    """Service wrapper binding ``remove_worktree`` to configured defaults."""

    default_base_branch: str = DEFAULT_BASE_BRANCH
    git_path: str | None = None
    env: Mapping[str, str] | None = None
    runner: exec_util.CommandRunner | None = None

    def _run(self, request: RemovalRequest) -> RemovalOutcome:
        return remove_worktree(
            request,
            env=self.env,
            default_base_branch=self.default_base_branch,
            git_path=self.git_path,
            runner=self.runner,
        )
