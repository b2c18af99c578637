"""Callable service base shared by the reconcilers.

A service is a configured object called with one request. ``_run`` either
returns the outcome or raises a ``ServiceFailure``; ``_handle_failure`` gets a
chance to turn that failure into an outcome and re-raises by default.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .. import log as prworktree_log
from .errors import ServiceFailure

RequestT = TypeVar("RequestT")
OutcomeT = TypeVar("OutcomeT")


class BaseService(ABC, Generic[RequestT, OutcomeT]):
    def __call__(self, request: RequestT) -> OutcomeT:
        prworktree_log.trace(f"{type(self).__name__}: {request!r}")
        try:
            return self._run(request)
        except ServiceFailure as failure:
            prworktree_log.debug(f"{type(self).__name__} failed [{failure.code}]")
            return self._handle_failure(failure)

    @abstractmethod
    def _run(self, request: RequestT) -> OutcomeT: ...

    def _handle_failure(self, failure: ServiceFailure) -> OutcomeT:
        raise failure
