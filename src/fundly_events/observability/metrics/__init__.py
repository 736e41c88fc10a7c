"""Observability – metrics ports, backends and the event metrics collector."""
from fundly_events.observability.metrics.events import EventMetrics, HandlerStats, Health, SagaStats
from fundly_events.observability.metrics.memory import InMemoryMetrics
from fundly_events.observability.metrics.noop import NoopMetrics
from fundly_events.observability.metrics.ports import Counter, Gauge, Histogram, Labels, Metrics

__all__ = [
    "Counter",
    "EventMetrics",
    "Gauge",
    "HandlerStats",
    "Health",
    "Histogram",
    "InMemoryMetrics",
    "Labels",
    "Metrics",
    "NoopMetrics",
    "SagaStats",
]
