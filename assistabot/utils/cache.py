"""
Expiring key/value cache shared by every platform integration.

Each entry carries its own TTL. Reads past the expiry behave as misses, and
``sweep()`` purges every expired entry in one pass (called once per poll tick).
"""

import time
from typing import Any, Callable, Hashable, NamedTuple, Optional

from cachetools import TLRUCache


MISSING = object()


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: Hashable, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class ExpiringCache:
    """
    TTL cache with per-key lifetimes and an injectable clock.

    Usage:
        cache = ExpiringCache()
        cache.set(("twitch", "stream", "foo"), stream, ttl=60)
        cache.get(("twitch", "stream", "foo"))
    """

    MISSING = MISSING

    def __init__(
        self,
        maxsize: int = 4096,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            maxsize: Maximum number of entries kept (least recently used evicted first)
            clock: Time source in seconds; defaults to time.monotonic
        """
        self._clock = clock or time.monotonic
        self._cache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=self._clock)

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        """Return the live value for ``key`` or ``default``."""
        entry = self._cache.get(key)
        if entry is None:
            return default
        return entry.value

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        """Store ``value`` for ``ttl`` seconds. Non-positive TTLs are not stored."""
        if ttl <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value, ttl)

    def invalidate(self, key: Hashable) -> None:
        self._cache.pop(key, None)

    def sweep(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        return len(self._cache.expire())

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
