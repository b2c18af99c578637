from __future__ import annotations

from pathlib import Path

import pytest

from prworktree import outputs


def test_write_outputs_appends_to_github_output(tmp_path: Path) -> None:
    target = tmp_path / "github_output"
    target.write_text("existing=1\n", encoding="utf-8")

    outputs.write_outputs(
        {"status": "ok", "message": "Branch validation passed"},
        env={"GITHUB_OUTPUT": str(target)},
    )

    assert target.read_text(encoding="utf-8") == (
        "existing=1\nstatus=ok\nmessage=Branch validation passed\n"
    )


def test_write_outputs_uses_heredoc_for_multiline(tmp_path: Path) -> None:
    target = tmp_path / "github_output"

    outputs.write_outputs(
        {"worktree-list": "/wt/a\n/wt/b", "worktree-count": "2"},
        env={"GITHUB_OUTPUT": str(target)},
    )

    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("worktree-list<<ghadelimiter_")
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[1:4] == ["/wt/a", "/wt/b", delimiter]
    assert lines[4] == "worktree-count=2"


def test_write_outputs_prints_without_github_output(
    capsys: pytest.CaptureFixture[str],
) -> None:
    outputs.write_outputs({"status": "error", "reason": "uncommitted"}, env={})

    assert capsys.readouterr().out == "status=error\nreason=uncommitted\n"
