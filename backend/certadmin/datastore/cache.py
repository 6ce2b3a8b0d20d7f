"""Short-lived memoization of pool-executed queries."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """Cached value and the clock reading at which it was computed."""

    data: T
    timestamp: float


class QueryCache:
    """
    Time-boxed cache keyed by caller-supplied query identities.

    Keys must deterministically encode the whole query (resource, filters,
    sort, pagination); the cache never inspects them. Failed computations
    are not stored. Once the cache holds more than ``max_entries`` entries,
    each write sweeps out entries older than twice the TTL.

    :param default_ttl: Freshness window in seconds when ``get`` gets none.
    :type default_ttl: float
    :param max_entries: Size above which the stale-entry sweep runs.
    :type max_entries: int
    :param clock: Monotonic clock returning seconds.
    :type clock: Callable[[], float]
    """

    def __init__(
        self,
        *,
        default_ttl: float = 60.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, compute: Callable[[], T], ttl: float | None = None) -> T:
        """
        Return the fresh cached value for ``key`` or compute and store it.

        :param key: Deterministic query identity.
        :type key: str
        :param compute: Zero-argument callable producing the value, typically
            a closure over ``ConnectionPool.execute_with_retry``.
        :type compute: Callable[[], T]
        :param ttl: Freshness window in seconds (defaults to ``default_ttl``).
        :type ttl: float | None
        :returns: Cached or freshly computed value.
        :rtype: T
        """
        window = self.default_ttl if ttl is None else ttl
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and now - entry.timestamp < window:
            logger.debug("cache.hit", extra={"cache_key": key})
            return entry.data

        value = compute()
        with self._lock:
            self._entries[key] = CacheEntry(data=value, timestamp=now)
            if len(self._entries) > self.max_entries:
                self._evict_older_than(now, 2 * window)
        return value

    def peek(self, key: str) -> CacheEntry[Any] | None:
        """Return the raw entry for ``key`` regardless of freshness."""
        return self._entries.get(key)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def _evict_older_than(self, now: float, max_age: float) -> None:
        stale = [k for k, v in self._entries.items() if now - v.timestamp > max_age]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug("cache.evicted", extra={"total": len(stale)})


__all__ = ["CacheEntry", "QueryCache"]
