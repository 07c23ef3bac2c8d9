"""Service container tests."""

from datetime import timedelta
from pathlib import Path

import pytest
import structlog
from conftest import FakeClock, FlakyStore
from riktiga_ads import AdCampaign, AdFormat, HttpAdClient, InMemoryAdClient
from riktiga_config import GuardConfig, QuotaSection, RetrySection, from_dict
from riktiga_guard import (
    GuardServices,
    bootstrap,
    build_services,
    policy_from_section,
    retry_spec_from_section,
)
from riktiga_kvstore import JsonFileKeyValueStore
from riktiga_quota import ANONYMOUS, Feature, Scoped, WindowKind


def make_services(store: FlakyStore, clock: FakeClock, config: GuardConfig | None = None) -> GuardServices:
    return build_services(config or GuardConfig(), store=store, ad_client=InMemoryAdClient(), clock=clock)


def test_policy_from_section_lifetime() -> None:
    """Known feature names map to the Feature enum."""
    policy = policy_from_section("ai_scan", QuotaSection(limit=3, legacy_keys=["ai_scan_usage_{owner}"]))
    assert policy.feature == Feature.AI_SCAN
    assert policy.limit == 3
    assert policy.window.kind == WindowKind.LIFETIME
    assert policy.legacy_keys == ("ai_scan_usage_{owner}",)


def test_policy_from_section_fixed_duration() -> None:
    """Custom features keep their name and fixed windows their duration."""
    policy = policy_from_section(
        "export", QuotaSection(limit=5, window="fixed_duration", duration_seconds=3600)
    )
    assert policy.feature == "export"
    assert policy.window.kind == WindowKind.FIXED_DURATION
    assert policy.window.duration == timedelta(hours=1)


def test_policy_from_section_weekly() -> None:
    """Weekly sections build weekly windows."""
    policy = policy_from_section("ai_scan", QuotaSection(limit=3, window="weekly"))
    assert policy.window.kind == WindowKind.WEEKLY


def test_retry_spec_from_section() -> None:
    """Retry settings carry over unchanged."""
    spec = retry_spec_from_section(RetrySection(max_attempts=5, initial_delay=1.0, jitter=True))
    assert spec.max_attempts == 5
    assert spec.initial_delay == 1.0
    assert spec.backoff_multiplier == 1.5
    assert spec.jitter is True


def test_build_services_defaults(store: FlakyStore, clock: FakeClock) -> None:
    """Default config yields the ai_scan and barcode_scan quotas."""
    services = make_services(store, clock)
    assert sorted(services.quotas) == ["ai_scan", "barcode_scan"]
    assert services.quota(Feature.AI_SCAN).policy.limit == 3
    assert services.quota("barcode_scan").policy.limit == 1
    assert services.retry.spec.max_attempts == 3
    assert services.app_cache.namespace == "app"
    assert services.owner == ANONYMOUS


def test_unknown_quota(store: FlakyStore, clock: FakeClock) -> None:
    """Asking for an unconfigured feature raises KeyError."""
    services = make_services(store, clock)
    with pytest.raises(KeyError, match="chat"):
        services.quota(Feature.CHAT)


def test_default_collaborators(tmp_path: Path) -> None:
    """Without overrides the file store and HTTP client are used."""
    config = from_dict({"storage": {"path": str(tmp_path / "store.json")}})
    services = build_services(config)
    assert isinstance(services.store, JsonFileKeyValueStore)
    assert isinstance(services.ads._client, HttpAdClient)


async def test_quotas_share_store_without_collision(store: FlakyStore, clock: FakeClock) -> None:
    """Every quota writes its own key in the shared store."""
    services = make_services(store, clock)
    await services.set_owner("alice")
    await services.quota(Feature.AI_SCAN).consume()
    await services.quota(Feature.BARCODE_SCAN).consume()
    assert await services.quota(Feature.AI_SCAN).remaining() == 2
    assert await services.quota(Feature.BARCODE_SCAN).can_use() is False
    assert sorted(await store.keys()) == ["ai_scan_lifetime_alice", "barcode_scan_lifetime_alice"]


async def test_set_owner_propagates(store: FlakyStore, clock: FakeClock) -> None:
    """Login and logout reach every quota and the chat counter."""
    services = make_services(store, clock)
    await services.set_owner("alice")
    assert services.owner == Scoped("alice")
    assert all(m.owner == Scoped("alice") for m in services.quotas.values())
    await services.chat_usage.increment()
    assert await store.get("chat_count_alice") == 1

    await services.set_owner(None)
    assert all(m.owner == ANONYMOUS for m in services.quotas.values())
    assert await services.chat_usage.count() == 0


async def test_sign_out_drops_owner_caches(store: FlakyStore, clock: FakeClock) -> None:
    """Signing out clears the owner's cached data and keeps quota records."""
    services = make_services(store, clock)
    await services.set_owner("alice")
    await services.quota(Feature.AI_SCAN).consume()
    await services.app_cache.set("feed", [1], owner="alice")
    await services.app_cache.set("feed", [2], owner="bob")
    services.personal_records.set({"bench": 100}, key="alice")

    await services.sign_out()

    assert services.owner == ANONYMOUS
    assert services.personal_records.get("alice") is None
    assert await services.app_cache.get("feed", owner="alice") is None
    assert await services.app_cache.get("feed", owner="bob") == [2]

    await services.set_owner("alice")
    assert await services.quota(Feature.AI_SCAN).remaining() == 2


async def test_ads_use_configured_ttl(store: FlakyStore, clock: FakeClock) -> None:
    """The ad cache ttl comes from the cache section."""
    client = InMemoryAdClient()
    client.ads[AdFormat.FEED] = [AdCampaign(id="c1", format=AdFormat.FEED, title="Campaign")]
    config = from_dict({"cache": {"ad_ttl_seconds": 60}})
    services = build_services(config, store=store, ad_client=client, clock=clock)
    await services.ads.feed_ads()
    clock.advance(seconds=59)
    await services.ads.feed_ads()
    assert client.fetch_count[AdFormat.FEED] == 1
    clock.advance(seconds=1)
    await services.ads.feed_ads()
    assert client.fetch_count[AdFormat.FEED] == 2


def test_bootstrap(tmp_path: Path) -> None:
    """bootstrap loads the file and builds services from it."""
    config_file = tmp_path / "riktiga.yaml"
    config_file.write_text(
        f"storage:\n  path: {tmp_path / 'store.json'}\n"
        "quotas:\n  ai_scan:\n    limit: 5\n    window: weekly\n"
    )
    services = bootstrap(config_file)
    assert list(services.quotas) == ["ai_scan"]
    assert services.quota("ai_scan").policy.limit == 5
    structlog.reset_defaults()
