from __future__ import annotations

import pytest
from pydantic import ValidationError

from prworktree import models


def test_change_request_record_requires_both_identifiers() -> None:
    record = models.ChangeRequestRecord(
        number=12,
        url="https://github.com/org/repo/pull/12",
        operation=models.PrOperation.CREATED,
    )

    assert record.outputs() == {
        "pr-number": "12",
        "pr-url": "https://github.com/org/repo/pull/12",
        "pr-operation": "created",
    }
    with pytest.raises(ValueError, match="invalid pull request number"):
        models.ChangeRequestRecord(
            number=0, url=record.url, operation=models.PrOperation.UPDATED
        )
    with pytest.raises(ValueError, match="invalid pull request URL"):
        models.ChangeRequestRecord(number=12, url="", operation=models.PrOperation.UPDATED)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/org/repo/pull/7", 7),
        ("http://ghe.example.com/org/repo/pull/7/files", 7),
        ("https://github.com/org/repo/pull/7#discussion", 7),
        ("https://github.com/org/repo/pull/", None),
        ("github.com/org/repo/pull/7", None),
        ("https://github.com/org/repo/pulls", None),
    ],
)
def test_pr_number_from_url(url: str, expected: int | None) -> None:
    assert models.pr_number_from_url(url) == expected


def test_validation_status_blocks_only_fail_and_error() -> None:
    blocking = {status for status in models.ValidationStatus if status.blocks}

    assert blocking == {models.ValidationStatus.FAIL, models.ValidationStatus.ERROR}
    assert models.ValidationResult(models.ValidationStatus.FAIL, "x").exit_code == 1
    assert models.ValidationResult(models.ValidationStatus.OK, "x").passed is True


def test_rate_limit_window_treats_bad_reset_as_unknown() -> None:
    window = models.RateLimitWindow.model_validate(
        {"remaining": 5, "limit": 5000, "reset": "soon"}
    )
    numeric = models.RateLimitWindow.model_validate(
        {"remaining": 5, "limit": 5000, "reset": "1700000000"}
    )

    assert window.reset is None
    assert numeric.reset == 1700000000


def test_rate_limit_window_requires_counts() -> None:
    with pytest.raises(ValidationError):
        models.RateLimitWindow.model_validate({"limit": 5000})


def test_repo_view_requires_owner_and_name() -> None:
    assert models.RepoView.model_validate({"nameWithOwner": "org/repo"}).name_with_owner == (
        "org/repo"
    )
    with pytest.raises(ValidationError):
        models.RepoView.model_validate({"nameWithOwner": "repo"})


def test_pull_request_list_entry_rejects_non_positive_numbers() -> None:
    with pytest.raises(ValidationError):
        models.PullRequestListEntry.model_validate({"number": 0})
