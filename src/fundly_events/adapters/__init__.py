"""Adapters – concrete implementations of the persistence ports."""
