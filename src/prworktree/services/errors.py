"""Failures a reconciliation service reports instead of an outcome.

Each subclass pins a stable ``code`` so callers can branch without
``isinstance`` chains. Only remote timeouts are worth retrying unchanged:
every other failure needs the input, the environment or the remote state
to change first.
"""

from __future__ import annotations

from typing import ClassVar, Literal

FailureCode = Literal[
    "validation_failed",
    "dependency_missing",
    "remote_timeout",
    "external_command_failed",
    "unexpected_state",
]


class ServiceFailure(Exception):
    """A failure the caller is expected to report, carrying an optional hint."""

    code: ClassVar[FailureCode] = "unexpected_state"
    retryable: ClassVar[bool] = False

    def __init__(self, message: str, *, recovery_hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.recovery_hint = recovery_hint

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationFailedError(ServiceFailure):
    """Request arguments are missing or malformed; nothing was sent remotely."""

    code = "validation_failed"


class DependencyMissingError(ServiceFailure):
    code = "dependency_missing"


class RemoteTimeoutError(ServiceFailure):
    """A remote call ran past its budget; the remote may or may not have acted."""

    code = "remote_timeout"
    retryable = True


class ExternalCommandFailedError(ServiceFailure):
    code = "external_command_failed"


class UnexpectedStateError(ServiceFailure):
    """The remote answered, but with something the reconciler cannot use."""

    code = "unexpected_state"
