"""Observability – in-process metrics backend."""
from __future__ import annotations

from collections import defaultdict

from fundly_events.observability.metrics.ports import Counter, Gauge, Histogram, Labels, Metrics

_SeriesKey = tuple[str, frozenset[tuple[str, str]]]


def _key(name: str, labels: Labels | None) -> _SeriesKey:
    return name, frozenset((labels or {}).items())


class _Counter(Counter):
    def __init__(self, owner: "InMemoryMetrics", name: str) -> None:
        self._owner = owner
        self._name = name

    def add(self, value: float = 1.0, labels: Labels | None = None) -> None:
        if value < 0:
            raise ValueError("Counter values only go up")
        self._owner._values[_key(self._name, labels)] += value


class _Histogram(Histogram):
    def __init__(self, owner: "InMemoryMetrics", name: str) -> None:
        self._owner = owner
        self._name = name

    def record(self, value: float, labels: Labels | None = None) -> None:
        self._owner._samples[_key(self._name, labels)].append(value)


class _Gauge(Gauge):
    def __init__(self, owner: "InMemoryMetrics", name: str) -> None:
        self._owner = owner
        self._name = name

    def set(self, value: float, labels: Labels | None = None) -> None:
        self._owner._values[_key(self._name, labels)] = value


class InMemoryMetrics(Metrics):
    """Keeps every series in dictionaries; intended for tests and local runs.

    Example::

        metrics = InMemoryMetrics()
        metrics.counter("events.published").add(labels={"event_type": "user.logged_in"})
        assert metrics.value("events.published", event_type="user.logged_in") == 1
    """

    def __init__(self) -> None:
        self._values: defaultdict[_SeriesKey, float] = defaultdict(float)
        self._samples: defaultdict[_SeriesKey, list[float]] = defaultdict(list)

    def counter(self, name: str, description: str = "") -> Counter:
        return _Counter(self, name)

    def histogram(self, name: str, description: str = "", unit: str = "ms") -> Histogram:
        return _Histogram(self, name)

    def gauge(self, name: str, description: str = "") -> Gauge:
        return _Gauge(self, name)

    def value(self, name: str, **labels: str) -> float:
        """Current counter or gauge value of one series (0.0 if never written)."""
        return self._values.get(_key(name, labels), 0.0)

    def samples(self, name: str, **labels: str) -> list[float]:
        return list(self._samples.get(_key(name, labels), []))


__all__ = ["InMemoryMetrics"]
