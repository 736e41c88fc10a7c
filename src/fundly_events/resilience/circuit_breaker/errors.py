"""Resilience – CircuitOpenError."""
from __future__ import annotations

from typing import Any

from fundly_events.kernel.errors import InfrastructureError


class CircuitOpenError(InfrastructureError):
    """A breaker refused the call; ``circuit_name`` says which one."""

    default_code = "circuit_open"

    def __init__(self, circuit_name: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Circuit breaker '{circuit_name}' is OPEN",
            detail={"circuit_name": circuit_name},
        )
        self.circuit_name = circuit_name

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "circuit_name": self.circuit_name}


__all__ = ["CircuitOpenError"]
