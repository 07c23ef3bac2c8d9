"""PersistentCache implementation."""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Any

import structlog

from riktiga_kvstore import KeyValueStore
from riktiga_quota.window import Clock, utc_now

from .exceptions import CacheError, CacheErrorCodes
from .models import CacheEntry, check_ttl

SHARED_SEGMENT = "~shared"

logger = structlog.get_logger(__name__)


class PersistentCache:
    """TTL cache whose entries live in the key-value store.

    Entries are stored under ``cached:{namespace}:{owner}:{key}`` so that
    everything belonging to one owner, or to the whole namespace, can be
    dropped at once. Owners may not contain ``:`` or start with ``~``.
    Values must be JSON compatible.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        ttl: timedelta,
        clock: Clock = utc_now,
    ) -> None:
        if not namespace or ":" in namespace:
            raise CacheError(
                CacheErrorCodes.INVALID_NAMESPACE,
                f"invalid cache namespace: {namespace!r}",
            )
        self._store = store
        self._namespace = namespace
        self._ttl = check_ttl(ttl)
        self._clock = clock

    @property
    def namespace(self) -> str:
        return self._namespace

    def _prefix(self, owner: str | None = None) -> str:
        if owner is None:
            return f"cached:{self._namespace}:"
        return f"cached:{self._namespace}:{owner}:"

    def _owner_segment(self, owner: str | None) -> str:
        if not owner:
            return SHARED_SEGMENT
        if ":" in owner or owner.startswith("~"):
            raise CacheError(
                CacheErrorCodes.INVALID_OWNER,
                f"cache owner must not contain ':' or start with '~': {owner!r}",
            )
        return owner

    def storage_key(self, key: str, owner: str | None = None) -> str:
        return f"{self._prefix(self._owner_segment(owner))}{key}"

    async def _entry(self, key: str, owner: str | None) -> CacheEntry[Any] | None:
        storage_key = self.storage_key(key, owner)
        try:
            raw = await self._store.get(storage_key)
        except Exception as e:
            logger.warning("cache_read_failed", key=storage_key, error=str(e))
            return None
        if raw is None:
            return None
        entry = CacheEntry.from_record(raw)
        if entry is None:
            logger.warning("cache_record_corrupt", key=storage_key)
        return entry

    async def get(
        self, key: str, owner: str | None = None, allow_expired: bool = False
    ) -> Any | None:
        """Return the cached value, or None when missing or expired."""
        entry = await self._entry(key, owner)
        if entry is None:
            return None
        if not allow_expired and not entry.is_fresh(self._ttl, self._clock()):
            return None
        return entry.value

    async def is_valid(self, key: str, owner: str | None = None) -> bool:
        entry = await self._entry(key, owner)
        return entry is not None and entry.is_fresh(self._ttl, self._clock())

    async def set(self, key: str, value: Any, owner: str | None = None) -> None:
        entry = CacheEntry(value=value, fetched_at=self._clock())
        record = entry.to_record()
        try:
            json.dumps(record)
        except (TypeError, ValueError) as e:
            raise CacheError(
                CacheErrorCodes.SERIALIZATION_ERROR,
                f"value for {key!r} is not JSON serializable",
                cause=e,
            ) from e
        storage_key = self.storage_key(key, owner)
        try:
            await self._store.set(storage_key, record)
        except Exception as e:
            logger.warning("cache_write_failed", key=storage_key, error=str(e))

    async def invalidate(self, key: str, owner: str | None = None) -> bool:
        storage_key = self.storage_key(key, owner)
        try:
            return await self._store.remove(storage_key)
        except Exception as e:
            logger.warning("cache_invalidate_failed", key=storage_key, error=str(e))
            return False

    async def _remove_prefix(self, prefix: str) -> int:
        try:
            keys = [k for k in await self._store.keys() if k.startswith(prefix)]
            for key in keys:
                await self._store.remove(key)
        except Exception as e:
            logger.warning("cache_clear_failed", prefix=prefix, error=str(e))
            return 0
        return len(keys)

    async def clear_owner(self, owner: str) -> int:
        """Drop every entry cached for owner. Returns the number removed."""
        return await self._remove_prefix(self._prefix(self._owner_segment(owner)))

    async def clear_all(self) -> int:
        return await self._remove_prefix(self._prefix())
