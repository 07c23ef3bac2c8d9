"""Plain persisted usage counter."""

from __future__ import annotations

import asyncio

import structlog

from riktiga_kvstore import KeyValueStore

from .keys import counter_key, owner_segment
from .model import ANONYMOUS, Anonymous, Feature, Owner, as_owner, check_feature, feature_name

logger = structlog.get_logger(__name__)


class UsageCounter:
    """Window-less counter, e.g. how many chat messages were sent.

    Stored as a native integer. Anonymous counts live in memory only.
    """

    def __init__(
        self,
        store: KeyValueStore,
        feature: Feature | str,
        owner: Owner | str | None = ANONYMOUS,
    ) -> None:
        self._store = store
        check_feature(feature)
        self._feature = feature
        self._owner = as_owner(owner)
        self._cached: int | None = None
        self._lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return counter_key(self._feature, self._owner)

    async def set_owner(self, owner: Owner | str | None) -> None:
        new_owner = as_owner(owner)
        if new_owner == self._owner:
            return
        async with self._lock:
            self._owner = new_owner
            self._cached = None

    async def _load(self) -> int:
        if self._cached is not None:
            return self._cached
        if isinstance(self._owner, Anonymous):
            self._cached = 0
            return 0
        try:
            raw = await self._store.get(self.key)
        except Exception as e:
            logger.warning("counter_read_failed", key=self.key, error=str(e))
            raw = None
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            if raw is not None:
                logger.warning("counter_record_corrupt", key=self.key)
            raw = 0
        self._cached = raw
        return raw

    async def count(self) -> int:
        async with self._lock:
            return await self._load()

    async def increment(self) -> int:
        async with self._lock:
            value = await self._load() + 1
            self._cached = value
            if not isinstance(self._owner, Anonymous):
                try:
                    await self._store.set(self.key, value)
                except Exception as e:
                    logger.warning("counter_write_failed", key=self.key, error=str(e))
        logger.debug(
            "counter_incremented",
            feature=feature_name(self._feature),
            owner=owner_segment(self._owner),
            count=value,
        )
        return value

    async def reset(self) -> None:
        async with self._lock:
            self._cached = 0
            if isinstance(self._owner, Anonymous):
                return
            try:
                await self._store.remove(self.key)
            except Exception as e:
                logger.warning("counter_reset_failed", key=self.key, error=str(e))
