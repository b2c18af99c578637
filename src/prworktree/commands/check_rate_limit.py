"""Check the GitHub API quota before remote work."""

from __future__ import annotations

from pathlib import Path

from .. import config
from ..outputs import write_outputs
from ..ratelimit import check_rate_limit as run_check
from ..remote import GithubClient


def check_rate_limit(args: object) -> None:
    settings = config.load_settings()
    threshold = getattr(args, "warning_threshold", None)
    report = run_check(
        GithubClient(gh_path=settings.gh_path, cwd=Path.cwd()),
        timeout=settings.timeouts.rate_limit,
        warning_threshold=threshold or settings.rate_limit_warning_threshold,
    )
    write_outputs(report.outputs())
    if report.exit_code:
        raise SystemExit(report.exit_code)
