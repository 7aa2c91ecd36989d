from __future__ import annotations


class LocalCacheError(Exception):
    """Base error for the local cache."""


class ConfigurationError(LocalCacheError):
    """Raised when the cache is constructed with invalid settings."""


class InvalidArgumentError(LocalCacheError):
    """Raised when an operation receives an invalid key or TTL."""


class InvalidValueError(LocalCacheError):
    """Raised when a value cannot be stored (None is reserved for a miss)."""
