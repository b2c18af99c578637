from .base import BaseService
from .errors import (
    DependencyMissingError,
    ExternalCommandFailedError,
    RemoteTimeoutError,
    ServiceFailure,
    UnexpectedStateError,
    ValidationFailedError,
)

__all__ = [
    "BaseService",
    "DependencyMissingError",
    "ExternalCommandFailedError",
    "RemoteTimeoutError",
    "ServiceFailure",
    "UnexpectedStateError",
    "ValidationFailedError",
]
