"""Service container built once at startup."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import structlog

from riktiga_ads import AdClient, AdClientConfig, AdService, AdServiceConfig, HttpAdClient
from riktiga_cache import PersistentCache, TimeBoundedCache
from riktiga_config import GuardConfig, QuotaSection, RetrySection, load
from riktiga_kvstore import JsonFileKeyValueStore, KeyValueStore
from riktiga_quota import (
    Feature,
    Owner,
    QuotaManager,
    QuotaPolicy,
    Scoped,
    UsageCounter,
    WindowMode,
    as_owner,
)
from riktiga_quota.window import Clock, utc_now
from riktiga_retry import RetryExecutor, RetrySpec
from riktiga_telemetry import new_logger

logger = structlog.get_logger(__name__)


def _feature(name: str) -> Feature | str:
    try:
        return Feature(name)
    except ValueError:
        return name


def policy_from_section(name: str, section: QuotaSection) -> QuotaPolicy:
    if section.window == "weekly":
        mode = WindowMode.weekly()
    elif section.window == "lifetime":
        mode = WindowMode.lifetime()
    else:
        assert section.duration_seconds is not None
        mode = WindowMode.fixed_duration(timedelta(seconds=section.duration_seconds))
    return QuotaPolicy(
        feature=_feature(name),
        limit=section.limit,
        window=mode,
        legacy_keys=tuple(section.legacy_keys),
    )


def retry_spec_from_section(section: RetrySection) -> RetrySpec:
    return RetrySpec(
        max_attempts=section.max_attempts,
        initial_delay=section.initial_delay,
        backoff_multiplier=section.backoff_multiplier,
        max_delay=section.max_delay,
        jitter=section.jitter,
    )


@dataclass
class GuardServices:
    """Every quota, cache and retry component, shared by the whole app."""

    config: GuardConfig
    store: KeyValueStore
    retry: RetryExecutor
    ads: AdService
    app_cache: PersistentCache
    personal_records: TimeBoundedCache[Any]
    chat_usage: UsageCounter
    quotas: dict[str, QuotaManager] = field(default_factory=dict)
    owner: Owner = field(default_factory=lambda: as_owner(None))

    def quota(self, feature: Feature | str) -> QuotaManager:
        name = feature.value if isinstance(feature, Feature) else feature
        try:
            return self.quotas[name]
        except KeyError:
            raise KeyError(f"no quota configured for feature: {name}") from None

    async def set_owner(self, owner: Owner | str | None) -> None:
        """Point every per-owner component at a new subject (login/logout)."""
        self.owner = as_owner(owner)
        for manager in self.quotas.values():
            await manager.set_owner(self.owner)
        await self.chat_usage.set_owner(self.owner)

    async def sign_out(self) -> None:
        """Forget the current owner and drop what was cached for them."""
        previous = self.owner
        await self.set_owner(None)
        self.personal_records.clear()
        if isinstance(previous, Scoped):
            removed = await self.app_cache.clear_owner(previous.key)
            logger.info("guard_signed_out", owner=previous.key, cache_entries_removed=removed)


def build_services(
    config: GuardConfig,
    store: KeyValueStore | None = None,
    ad_client: AdClient | None = None,
    clock: Clock = utc_now,
) -> GuardServices:
    """Construct every component once from config."""
    store = store or JsonFileKeyValueStore(Path(config.storage.path))
    retry = RetryExecutor(retry_spec_from_section(config.retry))
    ad_client = ad_client or HttpAdClient(
        AdClientConfig(
            functions_url=config.ads.functions_url,
            api_key=config.ads.api_key,
            timeout_seconds=config.ads.timeout_seconds,
        )
    )
    ads = AdService(
        ad_client,
        store,
        retry,
        AdServiceConfig(
            cache_ttl=timedelta(seconds=config.cache.ad_ttl_seconds),
            popup_cooldown=timedelta(seconds=config.cache.popup_cooldown_seconds),
        ),
        clock=clock,
    )
    quotas = {
        name: QuotaManager(policy_from_section(name, section), store, clock=clock)
        for name, section in config.quotas.items()
    }
    services = GuardServices(
        config=config,
        store=store,
        retry=retry,
        ads=ads,
        app_cache=PersistentCache(
            store, "app", timedelta(seconds=config.cache.app_cache_ttl_seconds), clock=clock
        ),
        personal_records=TimeBoundedCache(
            timedelta(seconds=config.cache.personal_record_ttl_seconds),
            clock=clock,
            name="personal_records",
        ),
        chat_usage=UsageCounter(store, Feature.CHAT),
        quotas=quotas,
    )
    logger.info("guard_services_built", features=sorted(quotas), environment=config.app.environment)
    return services


def bootstrap(config_path: Path, env_path: Path | None = None) -> GuardServices:
    """Load config, configure logging and build the services."""
    config = load(config_path, env_path)
    new_logger(level=config.log.level, format=config.log.format)
    return build_services(config)
