from __future__ import annotations

from dataclasses import dataclass

import pytest

from prworktree.services import (
    BaseService,
    DependencyMissingError,
    RemoteTimeoutError,
    ServiceFailure,
    ValidationFailedError,
)


@dataclass
class _Echo(BaseService[str, str]):
    fail_with: ServiceFailure | None = None

    def _run(self, request: str) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        return request.upper()


class _Recovering(_Echo):
    def _handle_failure(self, failure: ServiceFailure) -> str:
        return f"recovered {failure.code}"


def test_call_returns_run_result() -> None:
    assert _Echo()("ok") == "OK"


def test_failures_propagate_by_default() -> None:
    failure = ValidationFailedError("missing title", recovery_hint="pass a title")

    with pytest.raises(ValidationFailedError) as excinfo:
        _Echo(fail_with=failure)("ignored")

    assert excinfo.value.message == "missing title"
    assert excinfo.value.recovery_hint == "pass a title"
    assert excinfo.value.code == "validation_failed"


def test_handle_failure_can_recover() -> None:
    service = _Recovering(fail_with=DependencyMissingError("missing required command: gh"))

    assert service("ignored") == "recovered dependency_missing"


def test_only_timeouts_are_retryable() -> None:
    assert RemoteTimeoutError("slow").retryable is True
    assert DependencyMissingError("gone").retryable is False
    assert str(RemoteTimeoutError("slow")) == "slow"
