"""End-to-end worktree removal against a real git repository."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from prworktree.worktrees import RemovalReason, RemovalRequest, remove_worktree

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    _git(root, "init")
    _git(root, "symbolic-ref", "HEAD", "refs/heads/main")
    (root / "README.md").write_text("hello\n", encoding="utf-8")
    _git(root, "add", "README.md")
    _git(root, "commit", "-m", "init")
    return root


def test_auto_detected_worktree_is_removed_once(repo: Path, tmp_path: Path) -> None:
    worktree = tmp_path / "wt-feat"
    _git(repo, "worktree", "add", "-b", "feat/x", str(worktree))

    first = remove_worktree(RemovalRequest(repo_dir=repo), env={})
    second = remove_worktree(RemovalRequest(path=str(worktree), repo_dir=repo), env={})

    assert first.reason is RemovalReason.REMOVED
    assert first.removed_path is not None
    assert first.removed_path.resolve() == worktree.resolve()
    assert not worktree.exists()
    assert second.reason is RemovalReason.ALREADY_REMOVED


def test_dirty_worktree_requires_force(repo: Path, tmp_path: Path) -> None:
    worktree = tmp_path / "wt-dirty"
    _git(repo, "worktree", "add", "-b", "feat/dirty", str(worktree))
    (worktree / "scratch.txt").write_text("wip\n", encoding="utf-8")

    blocked = remove_worktree(RemovalRequest(path=str(worktree), repo_dir=repo), env={})
    forced = remove_worktree(
        RemovalRequest(path=str(worktree), force=True, repo_dir=repo), env={}
    )

    assert blocked.reason is RemovalReason.UNCOMMITTED
    assert forced.reason is RemovalReason.REMOVED_DIRTY
    assert not worktree.exists()


def test_plain_directory_is_not_registered(repo: Path, tmp_path: Path) -> None:
    stray = tmp_path / "stray"
    stray.mkdir()

    outcome = remove_worktree(RemovalRequest(path=str(stray), repo_dir=repo), env={})

    assert outcome.reason is RemovalReason.NOT_REGISTERED
