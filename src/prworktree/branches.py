"""Remote branch existence validation for a base/head pair."""

from __future__ import annotations

from typing import Collection

from . import exec as exec_util
from . import log as prworktree_log
from .models import ValidationResult, ValidationStatus
from .remote import GitRemote

PASSED_MESSAGE = "Branch validation passed"


def branch_ref(branch: str) -> str:
    """Return the fully-qualified ref for a branch name.

    Example:
        >>> branch_ref("main")
        'refs/heads/main'
    """
    return f"refs/heads/{branch}"


def remote_branch_exists(refs: Collection[str], branch: str) -> bool:
    """Return whether ``branch`` is listed exactly among ``refs``.

    Example:
        >>> refs = {"refs/heads/feature-long"}
        >>> remote_branch_exists(refs, "feature")
        False
        >>> remote_branch_exists(refs, "feature-long")
        True
    """
    if not branch:
        return False
    return branch_ref(branch) in refs


def _pair_checks(
    refs: Collection[str], base: str, head: str, remote: str
) -> list[tuple[bool, str]]:
    return [
        (
            remote_branch_exists(refs, base),
            f"Base branch '{base}' does not exist on remote; "
            "push the base branch first or check the branch name",
        ),
        (
            remote_branch_exists(refs, head),
            f"PR branch '{head}' does not exist on remote; "
            f"push it first: git push {remote} {head}",
        ),
        (
            base != head,
            f"Base and PR branches cannot be the same ({base}); "
            "create the pull request from a separate branch",
        ),
    ]


def evaluate_branch_pair(
    refs: Collection[str], base: str, head: str, *, remote: str = "origin"
) -> ValidationResult:
    """Evaluate every check against a ref listing; the first failure wins."""
    checks = _pair_checks(refs, base, head, remote)
    failures = [message for passed, message in checks if not passed]
    if failures:
        return ValidationResult(ValidationStatus.FAIL, failures[0])
    return ValidationResult(ValidationStatus.OK, PASSED_MESSAGE)


def validate_branches(
    remote: GitRemote,
    base: str | None,
    head: str | None,
    *,
    timeout: float = 30.0,
) -> ValidationResult:
    """Validate that ``base`` and ``head`` both exist on the remote and differ.

    A missing argument is a ``fail``; an unreachable remote is an ``error``.
    """
    base = (base or "").strip()
    head = (head or "").strip()
    if not base or not head:
        message = "Branch names not provided"
        prworktree_log.error(message)
        return ValidationResult(ValidationStatus.FAIL, message)

    prworktree_log.debug(f"base branch: {base}; PR branch: {head}")
    listed = remote.head_refs(timeout=timeout)
    if not listed.ok or listed.value is None:
        if listed.timed_out:
            budget = exec_util.format_seconds(listed.budget_seconds)
            message = (
                f"Timed out after {budget} seconds listing branches on remote '{remote.remote}'"
            )
        else:
            message = f"Failed to list branches on remote '{remote.remote}'"
        prworktree_log.error(listed.describe())
        return ValidationResult(ValidationStatus.ERROR, message)

    result = evaluate_branch_pair(listed.value, base, head, remote=remote.remote)
    if result.passed:
        prworktree_log.success(result.message)
    else:
        prworktree_log.error(result.message)
    return result
