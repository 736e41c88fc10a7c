"""Resilience – per-handler circuit breakers."""
from fundly_events.resilience.circuit_breaker.breaker import CircuitBreaker
from fundly_events.resilience.circuit_breaker.errors import CircuitOpenError
from fundly_events.resilience.circuit_breaker.policy import CircuitBreakerPolicy, CircuitBreakerState

__all__ = ["CircuitBreaker", "CircuitBreakerPolicy", "CircuitBreakerState", "CircuitOpenError"]
