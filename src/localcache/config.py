"""Configuration and environment helpers for the cache.

Provides a small helper to read typed environment variables and exposes
defaults used when a cache is constructed without explicit settings
(e.g. DEFAULT_GC_INTERVAL).
"""

from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Seconds between background sweeps of expired entries
DEFAULT_GC_INTERVAL = _env_float("LOCAL_CACHE_GC_INTERVAL", 5.0)
