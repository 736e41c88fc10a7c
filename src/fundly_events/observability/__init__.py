"""Observability – structured logging, correlation context and metrics."""
