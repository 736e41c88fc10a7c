"""Application saga – saga-specific errors."""
from __future__ import annotations

from fundly_events.kernel.errors import NotFoundError


class UnknownSagaTypeError(NotFoundError):
    """No :class:`SagaDefinition` is registered under the requested type."""

    default_code = "unknown_saga_type"

    def __init__(self, saga_type: str) -> None:
        super().__init__("SagaDefinition", saga_type)
        self.saga_type = saga_type


class SagaNotFoundError(NotFoundError):
    default_code = "saga_not_found"

    def __init__(self, saga_id: str) -> None:
        super().__init__("SagaInstance", saga_id)
        self.saga_id = saga_id


__all__ = ["SagaNotFoundError", "UnknownSagaTypeError"]
