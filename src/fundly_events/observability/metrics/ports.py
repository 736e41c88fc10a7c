"""Observability – metric instrument ports."""
from __future__ import annotations

import abc

Labels = dict[str, str]


class Counter(abc.ABC):
    """Monotonically increasing count."""

    @abc.abstractmethod
    def add(self, value: float = 1.0, labels: Labels | None = None) -> None: ...


class Histogram(abc.ABC):
    """Distribution of observed values, e.g. handler latency."""

    @abc.abstractmethod
    def record(self, value: float, labels: Labels | None = None) -> None: ...


class Gauge(abc.ABC):
    """A value that is overwritten rather than accumulated."""

    @abc.abstractmethod
    def set(self, value: float, labels: Labels | None = None) -> None: ...


class Metrics(abc.ABC):
    """Port: hands out named instruments from a metrics backend.

    Asking twice for the same name returns instruments that feed the same
    series.
    """

    @abc.abstractmethod
    def counter(self, name: str, description: str = "") -> Counter: ...

    @abc.abstractmethod
    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram: ...

    @abc.abstractmethod
    def gauge(self, name: str, description: str = "") -> Gauge: ...


__all__ = ["Counter", "Gauge", "Histogram", "Labels", "Metrics"]
