"""Git helper functions used by the prworktree reconcilers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from . import exec as exec_util


@dataclass(frozen=True)
class WorktreeEntry:
    """One record of ``git worktree list --porcelain``."""

    path: Path
    head: str | None = None
    branch: str | None = None
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False

    @property
    def branch_name(self) -> str | None:
        """Return the short branch name (without ``refs/heads/``)."""
        if self.branch and self.branch.startswith("refs/heads/"):
            return self.branch[len("refs/heads/") :]
        return self.branch


def _run_git_capture(
    cmd: list[str],
    *,
    cwd: Path | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> exec_util.CommandResult | None:
    return exec_util.run_with_runner(
        exec_util.CommandRequest(
            argv=tuple(cmd),
            cwd=cwd,
        ),
        runner=runner,
    )


def strip_git_suffix(path: str) -> str:
    """Remove a trailing ``.git`` suffix from a path string.

    Args:
        path: Git URL or path.

    Returns:
        Path without a trailing ``.git``.

    Example:
        >>> strip_git_suffix("example/repo.git")
        'example/repo'
    """
    normalized = path.strip().rstrip("/")
    if normalized.lower().endswith(".git"):
        return normalized[: -len(".git")]
    return normalized


def git_command(args: list[str], *, git_path: str | None = None) -> list[str]:
    """Build a git command using an optional executable path.

    Example:
        >>> git_command(["status"], git_path="/usr/bin/git")
        ['/usr/bin/git', 'status']
    """
    resolved = git_path.strip() if isinstance(git_path, str) else ""
    if not resolved:
        resolved = "git"
    return [resolved, *args]


def normalize_origin_url(value: str) -> str:
    """Normalize a Git remote URL to a ``host/owner/name`` identifier.

    Supports SSH SCP-style URLs and HTTP(S)/SSH/git URLs. Anything else is
    returned stripped.

    Example:
        >>> normalize_origin_url("git@github.com:org/repo.git")
        'github.com/org/repo'
        >>> normalize_origin_url("https://github.com/org/repo.git")
        'github.com/org/repo'
    """
    raw = value.strip()
    if not raw:
        return ""

    scp_match = re.match(r"^(?P<user>[^@]+)@(?P<host>[^:]+):(?P<path>.+)$", raw)
    if scp_match:
        host = scp_match.group("host").lower()
        path = strip_git_suffix(scp_match.group("path").lstrip("/"))
        return f"{host}/{path}"

    if "://" in raw:
        parsed = urlparse(raw)
        scheme = (parsed.scheme or "").lower()
        host = (parsed.hostname or "").lower()
        path = strip_git_suffix((parsed.path or "").lstrip("/"))
        if scheme in {"http", "https", "ssh", "git"} and host:
            return f"{host}/{path}"

    return raw


def github_repo_slug(origin: str | None) -> str | None:
    """Return the GitHub ``owner/name`` slug for a remote URL when applicable.

    Example:
        >>> github_repo_slug("git@github.com:org/repo.git")
        'org/repo'
        >>> github_repo_slug("git@bitbucket.org:org/repo.git") is None
        True
    """
    if not origin:
        return None
    normalized = normalize_origin_url(origin)
    if not normalized.startswith("github.com/"):
        return None
    slug = normalized.split("/", 1)[1]
    owner, sep, name = slug.partition("/")
    if not owner or not name or sep != "/" or "/" in name:
        return None
    return slug


def git_current_branch(
    repo_dir: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> str | None:
    """Return the checked-out branch name, or ``None`` when detached/unavailable."""
    result = _run_git_capture(
        git_command(["-C", str(repo_dir), "rev-parse", "--abbrev-ref", "HEAD"], git_path=git_path),
        runner=runner,
    )
    if result is None or result.returncode != 0:
        return None
    branch = result.stdout.strip()
    if not branch or branch == "HEAD":
        return None
    return branch


def git_remote_url(
    repo_dir: Path,
    remote: str = "origin",
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> str | None:
    """Return the URL configured for ``remote``, or ``None`` if missing."""
    result = _run_git_capture(
        git_command(["-C", str(repo_dir), "remote", "get-url", remote], git_path=git_path),
        runner=runner,
    )
    if result is None or result.returncode != 0:
        return None
    return result.stdout.strip() or None


def git_is_worktree(
    path: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> bool:
    """Return whether git recognizes ``path`` as a working tree."""
    result = _run_git_capture(
        git_command(["-C", str(path), "rev-parse", "--is-inside-work-tree"], git_path=git_path),
        runner=runner,
    )
    if result is None or result.returncode != 0:
        return False
    return result.stdout.strip() == "true"


def git_status_porcelain(
    path: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> list[str] | None:
    """Return ``git status --porcelain`` lines, or ``None`` when status fails."""
    result = _run_git_capture(
        git_command(["-C", str(path), "status", "--porcelain"], git_path=git_path),
        runner=runner,
    )
    if result is None or result.returncode != 0:
        return None
    return [line for line in result.stdout.splitlines() if line.strip()]


def parse_worktree_porcelain(raw: str) -> list[WorktreeEntry]:
    """Parse ``git worktree list --porcelain`` output.

    Records are separated by blank lines; the first record is the main
    working tree.

    Example:
        >>> entries = parse_worktree_porcelain(
        ...     "worktree /repo\\nHEAD abc\\nbranch refs/heads/main\\n\\n"
        ...     "worktree /wt/feat\\nHEAD def\\nbranch refs/heads/feat\\n"
        ... )
        >>> [entry.branch_name for entry in entries]
        ['main', 'feat']
    """
    entries: list[WorktreeEntry] = []
    fields: dict[str, object] = {}

    def flush() -> None:
        path = fields.get("path")
        if isinstance(path, str) and path:
            entries.append(
                WorktreeEntry(
                    path=Path(path),
                    head=fields.get("head") if isinstance(fields.get("head"), str) else None,
                    branch=fields.get("branch") if isinstance(fields.get("branch"), str) else None,
                    bare=bool(fields.get("bare")),
                    detached=bool(fields.get("detached")),
                    locked=bool(fields.get("locked")),
                    prunable=bool(fields.get("prunable")),
                )
            )
        fields.clear()

    for line in raw.splitlines():
        if not line.strip():
            flush()
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            fields["path"] = value.strip()
        elif key == "HEAD":
            fields["head"] = value.strip()
        elif key == "branch":
            fields["branch"] = value.strip()
        elif key in {"bare", "detached", "locked", "prunable"}:
            fields[key] = True
    flush()
    return entries


def _parse_worktree_list(result: exec_util.CommandResult) -> list[WorktreeEntry]:
    return parse_worktree_porcelain(result.stdout or "")


def git_worktree_list(
    repo_dir: Path,
    *,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> exec_util.BoundedResult[list[WorktreeEntry]]:
    """List the repository's registered worktrees."""
    spec = exec_util.CommandSpec(
        request=exec_util.CommandRequest(
            argv=tuple(
                git_command(
                    ["-C", str(repo_dir), "worktree", "list", "--porcelain"],
                    git_path=git_path,
                )
            ),
        ),
        parser=_parse_worktree_list,
        context="git worktree list",
    )
    return exec_util.run_bounded(spec, operation="git worktree list", runner=runner)


def git_worktree_remove(
    repo_dir: Path,
    worktree_path: Path,
    *,
    force: bool = False,
    git_path: str | None = None,
    runner: exec_util.CommandRunner | None = None,
) -> exec_util.BoundedResult[None]:
    """Remove a worktree and its registry entry."""
    args = ["-C", str(repo_dir), "worktree", "remove"]
    if force:
        args.append("--force")
    args.append(str(worktree_path))
    spec = exec_util.CommandSpec(
        request=exec_util.CommandRequest(argv=tuple(git_command(args, git_path=git_path))),
        parser=exec_util.ignore_output,
    )
    return exec_util.run_bounded(spec, operation="git worktree remove", runner=runner)
