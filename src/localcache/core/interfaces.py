"""Core protocol definitions.

Defines the Cache protocol implemented by LocalCache so callers can
depend on the get/set/delete contract rather than a concrete class.
"""

from __future__ import annotations

from typing import Optional, Protocol, TypeVar

T = TypeVar("T")


class Cache(Protocol[T]):
    """Contract for any key/value cache."""
    def get(self, key: str) -> Optional[T]:
        ...

    def set(self, key: str, value: T, ttl: Optional[int] = None) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...
