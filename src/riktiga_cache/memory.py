"""TimeBoundedCache implementation."""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Awaitable, Callable, Hashable
from datetime import timedelta
from typing import Generic, TypeVar

import structlog

from riktiga_quota.window import Clock, utc_now

from .models import CacheEntry, check_ttl

T = TypeVar("T")

DEFAULT_KEY = "default"

logger = structlog.get_logger(__name__)


def _not_none(value: object) -> bool:
    return value is not None


class TimeBoundedCache(Generic[T]):
    """In-memory values valid for ``ttl`` after they were fetched.

    ``get_or_fetch`` is the usual entry point: a valid entry is returned
    without calling the fetcher; otherwise the fetcher runs and its result
    replaces the entry. A failed fetch leaves the stale entry in place.
    """

    def __init__(
        self,
        ttl: timedelta,
        clock: Clock = utc_now,
        is_present: Callable[[T], bool] = _not_none,
        name: str = "cache",
    ) -> None:
        self._ttl = check_ttl(ttl)
        self._clock = clock
        self._is_present = is_present
        self._name = name
        self._entries: dict[Hashable, CacheEntry[T]] = {}
        self._locks: weakref.WeakValueDictionary[Hashable, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, key: Hashable = DEFAULT_KEY) -> CacheEntry[T] | None:
        """Return the entry for key, fresh or stale."""
        return self._entries.get(key)

    def set(self, value: T, key: Hashable = DEFAULT_KEY) -> CacheEntry[T]:
        entry = CacheEntry(value=value, fetched_at=self._clock())
        self._entries[key] = entry
        return entry

    def is_valid(self, key: Hashable = DEFAULT_KEY) -> bool:
        entry = self._entries.get(key)
        if entry is None or not self._is_present(entry.value):
            return False
        return entry.is_fresh(self._ttl, self._clock())

    def invalidate(self, key: Hashable = DEFAULT_KEY) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_fetch(
        self,
        fetch: Callable[[], Awaitable[T]],
        key: Hashable = DEFAULT_KEY,
        allow_stale: bool = False,
    ) -> T:
        """Return the cached value for key, fetching only when it is not valid.

        With ``allow_stale`` a failed fetch falls back to the stale entry when
        one exists; otherwise the fetch error propagates.
        """
        if self.is_valid(key):
            return self._entries[key].value
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            # Another caller may have refreshed the entry while we waited.
            if self.is_valid(key):
                return self._entries[key].value
            try:
                value = await fetch()
            except Exception as e:
                stale = self._entries.get(key)
                if allow_stale and stale is not None:
                    logger.warning(
                        "cache_serving_stale",
                        cache=self._name,
                        key=str(key),
                        fetched_at=stale.fetched_at.isoformat(),
                        error=str(e),
                    )
                    return stale.value
                raise
            self.set(value, key)
            logger.debug("cache_refreshed", cache=self._name, key=str(key))
            return value
