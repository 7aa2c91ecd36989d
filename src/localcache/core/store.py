"""Recency-ordered key/value storage backing the LRU policy.

Head of the OrderedDict is the least-recently-used key, tail is the most
recently used or inserted one.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Generic, Iterator, Optional, Tuple, TypeVar

T = TypeVar("T")


class OrderedStore(Generic[T]):
    def __init__(self, *, size_limit: Optional[int] = None) -> None:
        self._size_limit = size_limit
        self._data: "OrderedDict[str, T]" = OrderedDict()

    @property
    def size_limit(self) -> Optional[int]:
        return self._size_limit

    def get(self, key: str) -> Optional[T]:
        """Return the value for `key` and promote it to most-recently-used."""
        value = self._data.get(key)
        if value is None:
            return None
        self._data.move_to_end(key, last=True)
        return value

    def pop(self, key: str) -> Optional[T]:
        return self._data.pop(key, None)

    def push(self, key: str, value: T) -> None:
        # Re-insert at the tail without eviction; used to restore a popped entry
        self._data[key] = value

    def upsert(self, key: str, value: T) -> Optional[str]:
        """Insert `value` at the tail, evicting the LRU entry if a new key would overflow.

        Returns the evicted key, if any.
        """
        # Remove first so an overwrite never counts against the limit
        self._data.pop(key, None)

        evicted: Optional[str] = None
        if self._size_limit is not None and len(self._data) >= self._size_limit:
            evicted, _ = self._data.popitem(last=False)

        self._data[key] = value
        return evicted

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Tuple[str, T]]:
        # Snapshot taken when iteration starts; the cache may be mutated meanwhile
        for key, value in list(self._data.items()):
            yield key, value
