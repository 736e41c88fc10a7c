"""Domain errors: broken business rules, never worth retrying."""

from __future__ import annotations

from typing import Any

from fundly_events.kernel.errors.base import BaseError


class DomainError(BaseError):
    default_code = "domain_error"
    retryable = False


class ValidationError(DomainError):
    """Input failed validation; ``errors`` holds one entry per failing field."""

    default_code = "validation_error"

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": self.errors}


class NotFoundError(DomainError):
    default_code = "not_found"

    def __init__(self, resource: str, identifier: Any = None, **kwargs: Any) -> None:
        label = resource if identifier is None else f"{resource} '{identifier}'"
        super().__init__(f"{label} not found", **kwargs)
        self.resource = resource
        self.identifier = identifier


class ConflictError(DomainError):
    """The request collides with state that already exists (slug, event id)."""

    default_code = "conflict"


__all__ = ["ConflictError", "DomainError", "NotFoundError", "ValidationError"]
