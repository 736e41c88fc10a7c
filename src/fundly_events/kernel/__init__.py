"""Kernel – errors, time and the domain-event model."""
