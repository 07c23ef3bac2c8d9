"""Usage quota manager."""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import replace

import structlog

from riktiga_kvstore import KeyValueStore

from .keys import owner_segment, storage_key
from .migration import find_legacy_count
from .model import (
    ANONYMOUS,
    Anonymous,
    Owner,
    QuotaPolicy,
    QuotaStatus,
    QuotaWindow,
    Scoped,
    as_owner,
    decode_window,
    feature_name,
)
from .window import Clock, roll, start_of, utc_now

logger = structlog.get_logger(__name__)


class QuotaManager:
    """Per-feature usage quota with time-window resets.

    One instance is built per feature at startup and shared by every caller
    gating that feature. Counts are kept per owner in the key-value store;
    the active owner's window is also held in memory so that a failing store
    degrades to in-memory tracking instead of raising.

    This is a client-side soft gate. Exceeding the limit is never an error:
    check ``can_use()`` before the gated action and call ``consume()`` only
    after it succeeded.
    """

    def __init__(
        self,
        policy: QuotaPolicy,
        store: KeyValueStore,
        clock: Clock = utc_now,
    ) -> None:
        self._policy = policy
        self._store = store
        self._clock = clock
        self._owner: Owner = ANONYMOUS
        self._window: QuotaWindow | None = None
        self._degraded = False
        # Locks live only while a caller holds or waits on them.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def policy(self) -> QuotaPolicy:
        return self._policy

    @property
    def owner(self) -> Owner:
        return self._owner

    @property
    def feature(self) -> str:
        return feature_name(self._policy.feature)

    def key_for(self, owner: Owner) -> str:
        return storage_key(self._policy.feature, self._policy.window, owner)

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _fresh(self, owner: Owner) -> QuotaWindow:
        return QuotaWindow(owner=owner, window_start=start_of(self._policy.window, self._clock()))

    async def set_owner(self, owner: Owner | str | None) -> None:
        """Switch the active subject. The previous owner's window is dropped."""
        new_owner = as_owner(owner)
        if new_owner == self._owner:
            return
        self._owner = new_owner
        self._window = None
        self._degraded = False
        logger.info("quota_owner_changed", feature=self.feature, owner=owner_segment(new_owner))

    async def _read(self, owner: Scoped) -> tuple[QuotaWindow | None, bool]:
        """Return (window, readable). A failed read is never mistaken for no record."""
        key = self.key_for(owner)
        try:
            raw = await self._store.get(key)
        except Exception as e:
            logger.warning("quota_read_failed", feature=self.feature, key=key, error=str(e))
            return None, False
        if raw is None:
            return await self._migrate(owner)
        window = decode_window(owner, raw)
        if window is None:
            logger.warning("quota_record_corrupt", feature=self.feature, key=key)
        return window, True

    async def _migrate(self, owner: Scoped) -> tuple[QuotaWindow | None, bool]:
        if not self._policy.legacy_keys:
            return None, True
        try:
            found = await find_legacy_count(self._store, self._policy.legacy_keys, owner)
        except Exception as e:
            logger.warning("quota_migration_failed", feature=self.feature, error=str(e))
            return None, False
        if found is None:
            return None, True
        legacy_key, used = found
        window = QuotaWindow(owner=owner, window_start=start_of(self._policy.window, self._clock()), used=used)
        if await self._write(window):
            try:
                await self._store.remove(legacy_key)
            except Exception as e:
                logger.warning("quota_legacy_remove_failed", key=legacy_key, error=str(e))
        logger.info("quota_migrated", feature=self.feature, legacy_key=legacy_key, used=used)
        return window, True

    async def _write(self, window: QuotaWindow) -> bool:
        key = self.key_for(window.owner)
        try:
            await self._store.set(key, window.to_record())
        except Exception as e:
            logger.warning("quota_write_failed", feature=self.feature, key=key, error=str(e))
            return False
        return True

    async def _roll(self, window: QuotaWindow, persist: bool) -> QuotaWindow:
        new_start = roll(self._policy.window, window.window_start, self._clock())
        if new_start == window.window_start:
            return window
        logger.info(
            "quota_window_rolled",
            feature=self.feature,
            owner=owner_segment(window.owner),
            previous_used=window.used,
        )
        window = QuotaWindow(owner=window.owner, window_start=new_start)
        if persist:
            await self._write(window)
        return window

    async def _resolve(self, owner: Scoped) -> tuple[QuotaWindow, bool]:
        """Return the owner's current window and whether it is degraded.

        A degraded window was built without a successful read. It only
        counts uses made since, is re-read on every call and is never
        written over the stored record. Caller holds the owner's lock.
        """
        cached = self._window if self._window is not None and self._window.owner == owner else None
        if cached is not None and not self._degraded:
            window = await self._roll(cached, persist=True)
            degraded = False
        else:
            stored, readable = await self._read(owner)
            if not readable:
                window = await self._roll(cached or self._fresh(owner), persist=False)
                degraded = True
            else:
                window = await self._roll(stored or self._fresh(owner), persist=True)
                degraded = False
                if cached is not None and cached.used:
                    # Uses counted while the store was unreadable.
                    window = replace(window, used=window.used + cached.used)
                    await self._write(window)
                    logger.info(
                        "quota_recovered",
                        feature=self.feature,
                        owner=owner.key,
                        pending=cached.used,
                        used=window.used,
                    )
        if self._owner == owner:
            self._window = window
            self._degraded = degraded
        return window, degraded

    async def usage(self) -> QuotaWindow:
        """Current window for the active owner, rolled forward if expired."""
        owner = self._owner
        if isinstance(owner, Anonymous):
            return self._fresh(owner)
        async with self._lock_for(self.key_for(owner)):
            window, _ = await self._resolve(owner)
            return window

    async def status(self) -> QuotaStatus:
        window = await self.usage()
        return QuotaStatus(
            feature=self.feature,
            used=window.used,
            limit=self._policy.limit,
            window_start=window.window_start,
        )

    async def can_use(self) -> bool:
        return (await self.usage()).used < self._policy.limit

    async def is_at_limit(self) -> bool:
        return not await self.can_use()

    async def remaining(self) -> int:
        return max(0, self._policy.limit - (await self.usage()).used)

    async def consume(self) -> QuotaWindow:
        """Record one successful use of the gated feature."""
        owner = self._owner
        if isinstance(owner, Anonymous):
            logger.debug("quota_consume_untracked", feature=self.feature)
            return self._fresh(owner)
        async with self._lock_for(self.key_for(owner)):
            window, degraded = await self._resolve(owner)
            window = window.incremented()
            if not degraded:
                await self._write(window)
            if self._owner == owner:
                self._window = window
                self._degraded = degraded
        logger.info(
            "quota_consumed",
            feature=self.feature,
            owner=owner.key,
            used=window.used,
            limit=self._policy.limit,
        )
        return window

    async def reset(self) -> None:
        """Forget the active owner's usage, e.g. after account deletion."""
        owner = self._owner
        if isinstance(owner, Anonymous):
            return
        key = self.key_for(owner)
        async with self._lock_for(key):
            try:
                await self._store.remove(key)
            except Exception as e:
                logger.warning("quota_reset_failed", feature=self.feature, key=key, error=str(e))
            if self._owner == owner:
                self._window = None
                self._degraded = False
        logger.info("quota_reset", feature=self.feature, owner=owner.key)
