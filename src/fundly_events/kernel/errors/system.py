"""Errors outside the domain: wiring mistakes and I/O failures."""

from __future__ import annotations

from fundly_events.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Misconfiguration or a broken invariant between collaborators."""

    default_code = "application_error"


class InfrastructureError(BaseError):
    """A store, database or downstream call failed; usually transient."""

    default_code = "infrastructure_error"


__all__ = ["ApplicationError", "InfrastructureError"]
