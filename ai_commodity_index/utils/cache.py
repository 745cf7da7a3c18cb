"""
In-process TTL cache.

An explicit key → (value, expiry) map that is constructed by the caller and
handed to the services that use it. The clock is injectable so tests can
advance time without sleeping.

Usage::

    cache = TTLCache(ttl_seconds=300)
    rankings = cache.get_or_set(("rankings", "30d"), lambda: compute())
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after being set.

    Attributes:
        ttl_seconds: Default lifetime for new entries.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}.")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[Any, float]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (value, self._clock() + ttl)

    def get_or_set(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, computing and storing it on a miss.

        Exceptions from ``factory`` propagate and nothing is cached.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return value
        logger.debug("Cache miss: %s", key)
        value = factory()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[Hashable]:
        """Return the keys of entries that have not expired."""
        now = self._clock()
        return [k for k, (_, exp) in self._entries.items() if now < exp]

    def __len__(self) -> int:
        return len(self.keys())
