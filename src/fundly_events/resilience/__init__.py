"""Resilience – retry and circuit breaking."""
