"""CooldownGate implementation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from riktiga_kvstore import KeyValueStore
from riktiga_quota.window import Clock, is_fresh, utc_now

from .models import check_ttl

logger = structlog.get_logger(__name__)


class CooldownGate:
    """Gates how often an intrusive prompt may be shown.

    The last-shown moment is persisted as epoch seconds under ``key``. It is
    independent of any cache freshness: a freshly fetched prompt still may
    not be shown while the cooldown runs. A missing or unreadable value
    means the prompt was never shown.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        cooldown: timedelta,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._key = key
        self._cooldown = check_ttl(cooldown)
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    async def last_shown(self) -> datetime | None:
        try:
            raw = await self._store.get(self._key)
        except Exception as e:
            logger.warning("cooldown_read_failed", key=self._key, error=str(e))
            return None
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
            if raw is not None:
                logger.warning("cooldown_record_corrupt", key=self._key)
            return None
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning("cooldown_record_corrupt", key=self._key)
            return None

    async def can_show(self) -> bool:
        shown = await self.last_shown()
        if shown is None:
            return True
        return not is_fresh(shown, self._cooldown, self._clock())

    async def mark_shown(self) -> None:
        try:
            await self._store.set(self._key, self._clock().timestamp())
        except Exception as e:
            logger.warning("cooldown_write_failed", key=self._key, error=str(e))
