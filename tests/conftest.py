# ruff: noqa: E402

import sys
from pathlib import Path

import pytest
from _pytest.doctest import DoctestModule

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import prworktree.log as prworktree_log

DOCTEST_MODULES = {
    ROOT / "src" / "prworktree" / "__init__.py",
    ROOT / "src" / "prworktree" / "branches.py",
    ROOT / "src" / "prworktree" / "config.py",
    ROOT / "src" / "prworktree" / "exec.py",
    ROOT / "src" / "prworktree" / "git.py",
    ROOT / "src" / "prworktree" / "log.py",
    ROOT / "src" / "prworktree" / "models.py",
    ROOT / "src" / "prworktree" / "outputs.py",
    ROOT / "src" / "prworktree" / "pull_requests.py",
    ROOT / "src" / "prworktree" / "ratelimit.py",
    ROOT / "src" / "prworktree" / "worktrees.py",
}

_ISOLATED_ENV = (
    "GITHUB_ACTIONS",
    "GITHUB_OUTPUT",
    "GITHUB_BASE_REF",
    "NO_COLOR",
    "PRWORKTREE_LOG_LEVEL",
    "PRWORKTREE_NO_COLOR",
    "PRWORKTREE_REMOTE",
    "PRWORKTREE_DEFAULT_BASE_BRANCH",
    "PRWORKTREE_GIT_PATH",
    "PRWORKTREE_GH_PATH",
    "PRWORKTREE_RATE_LIMIT_WARNING_THRESHOLD",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PRWORKTREE_CONFIG", str(tmp_path / "missing-config.json"))
    prworktree_log.reset()


def pytest_collect_file(
    parent: pytest.Collector, file_path: Path
) -> DoctestModule | None:
    path = file_path if isinstance(file_path, Path) else Path(str(file_path))
    if path in DOCTEST_MODULES:
        return DoctestModule.from_parent(parent, path=path)
    return None
