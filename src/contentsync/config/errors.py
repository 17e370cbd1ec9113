"""Errors raised while reading contentsync settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when an environment setting cannot be used, e.g. a non-numeric chunk size."""
