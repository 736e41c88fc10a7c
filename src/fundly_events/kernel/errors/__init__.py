"""Kernel errors.

::

    BaseError                 retryable by default
    ├── DomainError           never retried
    │   ├── ValidationError
    │   ├── NotFoundError
    │   └── ConflictError
    ├── ApplicationError
    └── InfrastructureError

Errors tied to one feature (``DuplicateEventError``, ``CircuitOpenError``,
``SlugTakenError``) are declared beside the code that raises them.
"""

from fundly_events.kernel.errors.base import BaseError
from fundly_events.kernel.errors.domain import ConflictError, DomainError, NotFoundError, ValidationError
from fundly_events.kernel.errors.system import ApplicationError, InfrastructureError

__all__ = [
    "ApplicationError",
    "BaseError",
    "ConflictError",
    "DomainError",
    "InfrastructureError",
    "NotFoundError",
    "ValidationError",
]
