"""BaseError: the root of every error raised by fundly-events."""

from __future__ import annotations

import json
from typing import Any, ClassVar


class BaseError(Exception):
    """Root of the error hierarchy.

    ``code`` is a stable slug for logs and dead-letter reasons.  ``retryable``
    tells a :class:`~fundly_events.resilience.retry.RetryPolicy` whether a
    second attempt can succeed; subclasses flip it per category.

    Args:
        message: Human-readable description, also what ``str()`` returns.
        code: Overrides ``default_code`` for this instance.
        detail: Extra JSON-friendly context.
        cause: Underlying exception; also set as ``__cause__``.
    """

    default_code: ClassVar[str] = "error"
    retryable: ClassVar[bool] = True

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        detail: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail: dict[str, Any] = dict(detail or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}: {self.message})"

    def to_dict(self) -> dict[str, Any]:
        """Structured form for log fields and persisted error records."""
        data: dict[str, Any] = {
            "type": type(self).__name__,
            "code": self.code,
            "message": self.message,
        }
        if self.detail:
            data["detail"] = self.detail
        if self.cause is not None:
            data["cause"] = repr(self.cause)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)


__all__ = ["BaseError"]
