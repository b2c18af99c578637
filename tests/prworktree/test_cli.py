from __future__ import annotations

import re
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

import prworktree.cli as cli
from prworktree.models import ValidationResult, ValidationStatus
from prworktree.ratelimit import RateLimitReport
from prworktree.services import RemoteTimeoutError
from prworktree.worktrees import RemovalOutcome, RemovalReason

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def _strip_ansi(output: str) -> str:
    return ANSI_ESCAPE_RE.sub("", output)


def test_global_log_level_flag_sets_runtime_level() -> None:
    runner = CliRunner()
    with (
        patch("prworktree.commands.validate_branches.validate_branches", lambda _args: None),
        patch("prworktree.cli.prworktree_log.set_level") as mock_set_level,
    ):
        result = runner.invoke(cli.app, ["--log-level", "DEBUG", "validate-branches", "a", "b"])

    assert result.exit_code == 0
    mock_set_level.assert_called_once_with("debug")


def test_global_log_level_rejects_unknown_values() -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.app, ["--log-level", "loud", "validate-branches", "a", "b"], color=False
    )
    clean_output = _strip_ansi(result.output)

    assert result.exit_code != 0
    assert "--log-level" in clean_output
    assert "expected one of" in clean_output.lower()


def test_no_color_flag_disables_colorized_output() -> None:
    runner = CliRunner()
    with (
        patch("prworktree.commands.check_rate_limit.check_rate_limit", lambda _args: None),
        patch("prworktree.cli.prworktree_log.set_no_color") as mock_set_no_color,
    ):
        result = runner.invoke(cli.app, ["--no-color", "check-rate-limit"])

    assert result.exit_code == 0
    mock_set_no_color.assert_called_once_with(True)


def test_version_flag() -> None:
    result = CliRunner().invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert result.output.startswith("prworktree ")


def test_remove_worktree_passes_args_to_command() -> None:
    captured: dict[str, object] = {}

    def fake_remove(args: SimpleNamespace) -> None:
        captured.update(vars(args))

    with patch("prworktree.commands.remove_worktree.remove_worktree", fake_remove):
        result = CliRunner().invoke(
            cli.app,
            ["remove-worktree", "--path", "/wt/feat", "--base-branch", "develop", "--force"],
        )

    assert result.exit_code == 0
    assert captured == {"path": "/wt/feat", "base_branch": "develop", "force": True}


def test_create_pr_passes_args_to_command() -> None:
    captured: dict[str, object] = {}

    def fake_create(args: SimpleNamespace) -> None:
        captured.update(vars(args))

    with patch("prworktree.commands.create_pr.create_pr", fake_create):
        result = CliRunner().invoke(
            cli.app,
            [
                "create-pr",
                "main",
                "feat/x",
                "Title",
                "Body",
                "--label",
                "bug,docs",
                "--label",
                "ci",
                "--merge-method",
                "squash",
            ],
        )

    assert result.exit_code == 0
    assert captured == {
        "base": "main",
        "head": "feat/x",
        "title": "Title",
        "body": "Body",
        "labels": ["bug,docs", "ci"],
        "merge_method": "squash",
        "repo": None,
    }


def test_remove_worktree_writes_outputs_and_exits_on_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(target))

    class FakeService:
        def __init__(self, **kwargs: object) -> None:
            del kwargs

        def __call__(self, request: object) -> RemovalOutcome:
            del request
            return RemovalOutcome(RemovalReason.UNCOMMITTED, "Worktree has uncommitted changes")

    with patch("prworktree.commands.remove_worktree.RemoveWorktreeService", FakeService):
        result = CliRunner().invoke(cli.app, ["remove-worktree", "--path", "/wt"])

    assert result.exit_code == 1
    assert target.read_text(encoding="utf-8") == (
        "status=error\nreason=uncommitted\nmessage=Worktree has uncommitted changes\n"
    )


def test_skipped_removal_exits_zero() -> None:
    class FakeService:
        def __init__(self, **kwargs: object) -> None:
            del kwargs

        def __call__(self, request: object) -> RemovalOutcome:
            del request
            return RemovalOutcome(RemovalReason.ALREADY_REMOVED, "Worktree already removed: /wt")

    with patch("prworktree.commands.remove_worktree.RemoveWorktreeService", FakeService):
        result = CliRunner().invoke(cli.app, ["remove-worktree", "--path", "/wt"])

    assert result.exit_code == 0
    assert "reason=already-removed" in result.output


def test_create_pr_failure_prints_hint_and_exits() -> None:
    class FailingService:
        def __init__(self, **kwargs: object) -> None:
            del kwargs

        def __call__(self, request: object) -> object:
            del request
            raise RemoteTimeoutError(
                "gh pr create timed out after 60 seconds", recovery_hint="retry later"
            )

    with patch("prworktree.commands.create_pr.CreateOrUpdatePullRequestService", FailingService):
        result = CliRunner().invoke(cli.app, ["create-pr", "main", "feat/x", "Title", "Body"])

    output = _strip_ansi(result.output)
    assert result.exit_code == 1
    assert "gh pr create timed out after 60 seconds" in output
    assert "hint: retry later" in output
    assert "pr-number" not in output


def test_validate_branches_failure_exits_one() -> None:
    def fake_validation(remote: object, base: str, head: str, *, timeout: float) -> object:
        del remote, timeout
        return ValidationResult(
            ValidationStatus.FAIL, f"Base and PR branches cannot be the same ({base})"
        )

    with patch("prworktree.commands.validate_branches.run_validation", fake_validation):
        result = CliRunner().invoke(cli.app, ["validate-branches", "feat/x", "feat/x"])

    assert result.exit_code == 1
    assert "status=fail" in result.output


def test_check_rate_limit_warning_exits_zero() -> None:
    captured: dict[str, object] = {}

    def fake_check(client: object, *, timeout: float, warning_threshold: int) -> RateLimitReport:
        del client
        captured["timeout"] = timeout
        captured["warning_threshold"] = warning_threshold
        return RateLimitReport(
            ValidationResult(ValidationStatus.WARNING, "Rate limit low (3/5000 remaining)")
        )

    with patch("prworktree.commands.check_rate_limit.run_check", fake_check):
        result = CliRunner().invoke(cli.app, ["check-rate-limit", "--warning-threshold", "50"])

    assert result.exit_code == 0
    assert "status=warning" in result.output
    assert captured == {"timeout": 30.0, "warning_threshold": 50}
