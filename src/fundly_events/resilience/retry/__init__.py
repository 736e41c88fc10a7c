"""Resilience – retry with exponential backoff."""
from fundly_events.resilience.retry.policy import RetryConfig, RetryPolicy

__all__ = ["RetryConfig", "RetryPolicy"]
