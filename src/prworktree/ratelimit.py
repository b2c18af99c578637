"""GitHub API rate-limit pre-flight check.

The remaining call count is authoritative; the reset time is advisory and is
reported as ``unknown`` when it cannot be resolved.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from . import exec as exec_util
from . import log as prworktree_log
from .models import RateLimitSnapshot, ValidationResult, ValidationStatus
from .remote import GithubClient

DEFAULT_WARNING_THRESHOLD = 10
UNKNOWN_RESET = "unknown"


@dataclass(frozen=True)
class RateLimitReport:
    """Classification of one rate-limit fetch."""

    result: ValidationResult
    snapshot: RateLimitSnapshot | None = None

    @property
    def exit_code(self) -> int:
        return self.result.exit_code

    def outputs(self) -> dict[str, str]:
        outputs = self.result.outputs()
        if self.snapshot is not None:
            outputs["remaining"] = str(self.snapshot.remaining)
            outputs["limit"] = str(self.snapshot.limit)
            outputs["reset-time"] = format_reset_time(self.snapshot.reset_time)
        return outputs


def classify_remaining(
    remaining: int, *, warning_threshold: int = DEFAULT_WARNING_THRESHOLD
) -> ValidationStatus:
    """Classify a remaining-call count.

    Example:
        >>> classify_remaining(0).value, classify_remaining(9).value, classify_remaining(10).value
        ('error', 'warning', 'ok')
    """
    if remaining <= 0:
        return ValidationStatus.ERROR
    if remaining < warning_threshold:
        return ValidationStatus.WARNING
    return ValidationStatus.OK


def format_reset_time(reset_time: datetime | None) -> str:
    """Render a reset time for humans, or ``unknown``.

    Example:
        >>> format_reset_time(None)
        'unknown'
    """
    if reset_time is None:
        return UNKNOWN_RESET
    return reset_time.strftime("%Y-%m-%d %H:%M:%S UTC")


def _status_message(status: ValidationStatus, snapshot: RateLimitSnapshot) -> str:
    counts = f"{snapshot.remaining}/{snapshot.limit} remaining"
    if status is ValidationStatus.ERROR:
        reset = format_reset_time(snapshot.reset_time)
        return f"Rate limit exhausted ({counts}); wait for the reset at {reset} and rerun"
    if status is ValidationStatus.WARNING:
        return f"Rate limit low ({counts})"
    return f"Rate limit sufficient ({counts})"


def _failure_report(fetched: exec_util.BoundedResult[RateLimitSnapshot]) -> RateLimitReport:
    if fetched.timed_out:
        budget = exec_util.format_seconds(fetched.budget_seconds)
        message = f"GitHub API request timed out after {budget} seconds"
    elif fetched.malformed:
        message = "Failed to parse rate limit data (invalid JSON response)"
    else:
        message = "Failed to fetch GitHub API rate limit (API error)"
    prworktree_log.error(message)
    if fetched.detail:
        prworktree_log.debug(fetched.detail)
    return RateLimitReport(ValidationResult(ValidationStatus.ERROR, message))


def check_rate_limit(
    client: GithubClient,
    *,
    timeout: float = 30.0,
    warning_threshold: int = DEFAULT_WARNING_THRESHOLD,
) -> RateLimitReport:
    """Fetch the current quota and classify it.

    Args:
        client: GitHub CLI adapter.
        timeout: Budget for the ``gh api rate_limit`` call.
        warning_threshold: Remaining counts below this (and above zero) warn.

    Returns:
        A report whose status is ``ok``, ``warning`` or ``error``. Fetch and
        parse failures are ``error`` reports; nothing is raised.
    """
    fetched = client.rate_limit(timeout=timeout)
    if not fetched.ok or fetched.value is None:
        return _failure_report(fetched)

    snapshot = fetched.value
    status = classify_remaining(snapshot.remaining, warning_threshold=warning_threshold)
    message = _status_message(status, snapshot)
    if status is ValidationStatus.ERROR:
        prworktree_log.error(message)
    elif status is ValidationStatus.WARNING:
        prworktree_log.warning(f"{message}; resets at {format_reset_time(snapshot.reset_time)}")
    else:
        prworktree_log.success(message)
    return RateLimitReport(ValidationResult(status, message), snapshot)
