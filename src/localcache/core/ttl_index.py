"""Per-key expiration timestamps, kept apart from the stored values.

Sorting is deferred: `set` only marks the index dirty and the sweep sorts
once before scanning, so writes stay O(1).
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple


class TTLIndex:
    def __init__(self) -> None:
        self._expiries: Dict[str, int] = {}
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def set(self, key: str, expiry: int) -> None:
        # Re-insert so a changed expiry lands at the end until the next sort
        self._expiries.pop(key, None)
        self._expiries[key] = int(expiry)
        self._dirty = True

    def get(self, key: str) -> Optional[int]:
        return self._expiries.get(key)

    def clear(self, key: str) -> bool:
        return self._expiries.pop(key, None) is not None

    def is_expired(self, key: str, now: int) -> bool:
        expiry = self._expiries.get(key)
        return expiry is not None and expiry < now

    def sort_if_dirty(self) -> bool:
        """Stable-sort records by ascending expiry. Returns True if a sort ran."""
        if not self._dirty:
            return False
        self._expiries = dict(sorted(self._expiries.items(), key=lambda item: item[1]))
        self._dirty = False
        return True

    def pop_expired(self, now: int) -> List[str]:
        """Remove and return keys with expiry <= now. Assumes the index is sorted."""
        expired: List[str] = []
        for key, expiry in self._expiries.items():
            # Sorted, so the first live record ends the scan
            if expiry > now:
                break
            expired.append(key)

        for key in expired:
            del self._expiries[key]
        return expired

    def __contains__(self, key: object) -> bool:
        return key in self._expiries

    def __len__(self) -> int:
        return len(self._expiries)

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        # Ascending expiry only after sort_if_dirty()
        for key, expiry in list(self._expiries.items()):
            yield key, expiry
