"""Ad service: cached, retried, cooldown-gated ad fetching."""

from __future__ import annotations

import structlog

from riktiga_cache import CooldownGate, TimeBoundedCache
from riktiga_kvstore import KeyValueStore
from riktiga_quota.window import Clock, utc_now
from riktiga_retry import RetryExecutor

from .client import AdClient
from .exceptions import AdClientError
from .models import AdCampaign, AdFormat, AdServiceConfig

logger = structlog.get_logger(__name__)


class AdService:
    """Serves ads for every placement without hitting the backend on each view.

    Feed and banner ads are reused for ``cache_ttl`` as long as the last
    fetch returned something. The popup ad is additionally held back for
    ``popup_cooldown`` after it was shown. Backend failures never reach the
    caller: the stale list is served when there is one, otherwise nothing.
    """

    def __init__(
        self,
        client: AdClient,
        store: KeyValueStore,
        retry: RetryExecutor,
        config: AdServiceConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._retry = retry
        self._config = config or AdServiceConfig()
        self._listings: TimeBoundedCache[list[AdCampaign]] = TimeBoundedCache(
            self._config.cache_ttl, clock=clock, is_present=bool, name="ads"
        )
        self._popups: TimeBoundedCache[list[AdCampaign]] = TimeBoundedCache(
            self._config.cache_ttl, clock=clock, name="popup_ads"
        )
        self._popup_gate = CooldownGate(
            store, self._config.popup_cooldown_key, self._config.popup_cooldown, clock=clock
        )

    async def _load(
        self, cache: TimeBoundedCache[list[AdCampaign]], format: AdFormat
    ) -> list[AdCampaign]:
        async def fetch() -> list[AdCampaign]:
            return await self._retry.execute(lambda: self._client.fetch_ads(format))

        try:
            return await cache.get_or_fetch(fetch, key=format, allow_stale=True)
        except AdClientError as e:
            logger.warning("ads_fetch_failed", format=format.value, error=str(e))
            return []

    async def feed_ads(self) -> list[AdCampaign]:
        return await self._load(self._listings, AdFormat.FEED)

    async def banner_ads(self) -> list[AdCampaign]:
        return await self._load(self._listings, AdFormat.BANNER)

    async def popup_ad(self) -> AdCampaign | None:
        """The popup to show now, or None while the cooldown runs."""
        if not await self._popup_gate.can_show():
            return None
        ads = await self._load(self._popups, AdFormat.POPUP)
        return ads[0] if ads else None

    async def mark_popup_shown(self) -> None:
        await self._popup_gate.mark_shown()

    async def track_click(self, campaign_id: str) -> None:
        try:
            await self._client.track_click(campaign_id)
        except AdClientError as e:
            logger.warning("ads_track_click_failed", campaign_id=campaign_id, error=str(e))
