"""Domain results and Pydantic models for gh/git boundary payloads."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PR_URL_PATTERN = re.compile(r"^https?://\S+/pull/(?P<number>[0-9]+)(?:[/?#]\S*)?$")


class ValidationStatus(str, Enum):
    """Status shared by the pre-flight guards."""

    OK = "ok"
    WARNING = "warning"
    FAIL = "fail"
    ERROR = "error"

    @property
    def blocks(self) -> bool:
        """Return whether this status must stop the dependent reconciler."""
        return self in (ValidationStatus.FAIL, ValidationStatus.ERROR)


@dataclass(frozen=True)
class ValidationResult:
    """Result of a pre-flight guard.

    Example:
        >>> ValidationResult(ValidationStatus.WARNING, "low").exit_code
        0
    """

    status: ValidationStatus
    message: str

    @property
    def passed(self) -> bool:
        return not self.status.blocks

    @property
    def exit_code(self) -> int:
        return 1 if self.status.blocks else 0

    def outputs(self) -> dict[str, str]:
        return {"status": self.status.value, "message": self.message}


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Current API quota. ``reset_time`` is advisory and may be unknown."""

    remaining: int
    limit: int
    reset_time: datetime | None = None


class PrOperation(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UPDATE_FAILED = "update-failed"


MERGE_METHOD_VALUES = ("merge", "squash", "rebase", "never")


class MergeMethod(str, Enum):
    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"
    NEVER = "never"


class SideChannelStatus(str, Enum):
    """Independent status of a best-effort follow-up operation."""

    ENABLED = "enabled"
    FAILED = "failed"
    SKIPPED = "skipped"


def pr_number_from_url(url: str) -> int | None:
    """Extract the pull request number from a PR URL.

    Example:
        >>> pr_number_from_url("https://github.com/org/repo/pull/42")
        42
        >>> pr_number_from_url("https://github.com/org/repo/issues/42") is None
        True
    """
    match = _PR_URL_PATTERN.match(url.strip())
    if not match:
        return None
    return int(match.group("number"))


def is_valid_pr_url(url: str | None) -> bool:
    """Return whether ``url`` is an http(s) pull request URL.

    Example:
        >>> is_valid_pr_url("https://github.com/org/repo/pull/7")
        True
        >>> is_valid_pr_url("")
        False
    """
    if not url:
        return False
    return pr_number_from_url(url) is not None


@dataclass(frozen=True)
class ChangeRequestRecord:
    """A resolved pull request: number and URL exist together or not at all."""

    number: int
    url: str
    operation: PrOperation

    def __post_init__(self) -> None:
        if self.number <= 0:
            raise ValueError(f"invalid pull request number: {self.number}")
        if not is_valid_pr_url(self.url):
            raise ValueError(f"invalid pull request URL: {self.url!r}")

    def outputs(self) -> dict[str, str]:
        return {
            "pr-number": str(self.number),
            "pr-url": self.url,
            "pr-operation": self.operation.value,
        }


class RateLimitWindow(BaseModel):
    """The ``rate`` object of ``gh api rate_limit``."""

    model_config = ConfigDict(extra="allow")

    remaining: int
    limit: int
    reset: int | None = None

    @field_validator("reset", mode="before")
    @classmethod
    def _advisory_reset(cls, value: object) -> object:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None


class RateLimitResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    rate: RateLimitWindow


class PullRequestListEntry(BaseModel):
    """One entry of ``gh pr list --json number``."""

    model_config = ConfigDict(extra="allow")

    number: int = Field(gt=0)


class PullRequestView(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str


class RepoView(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name_with_owner: str = Field(alias="nameWithOwner")

    @field_validator("name_with_owner", mode="before")
    @classmethod
    def _require_slug(cls, value: object) -> object:
        if not isinstance(value, str) or "/" not in value.strip():
            raise ValueError("expected owner/name")
        return value.strip()
