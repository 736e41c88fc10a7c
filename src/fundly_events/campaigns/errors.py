"""Campaigns – domain errors."""
from __future__ import annotations

from fundly_events.kernel.errors import ConflictError


class SlugTakenError(ConflictError):
    """Another live campaign already uses the requested slug."""

    default_code = "slug_taken"

    def __init__(self, slug: str) -> None:
        super().__init__(f"Slug '{slug}' is already taken")
        self.slug = slug


__all__ = ["SlugTakenError"]
