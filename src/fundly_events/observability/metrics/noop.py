"""Observability – metrics backend that discards everything."""
from __future__ import annotations

from fundly_events.observability.metrics.ports import Counter, Gauge, Histogram, Labels, Metrics


class _Discard(Counter, Histogram, Gauge):
    def add(self, value: float = 1.0, labels: Labels | None = None) -> None:
        pass

    def record(self, value: float, labels: Labels | None = None) -> None:
        pass

    def set(self, value: float, labels: Labels | None = None) -> None:
        pass


class NoopMetrics(Metrics):
    """Default backend when nothing is exported."""

    _instrument = _Discard()

    def counter(self, name: str, description: str = "") -> Counter:
        return self._instrument

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram:
        return self._instrument

    def gauge(self, name: str, description: str = "") -> Gauge:
        return self._instrument


__all__ = ["NoopMetrics"]
