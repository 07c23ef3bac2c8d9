"""PersistentCache tests."""

from datetime import timedelta

import pytest
from conftest import FakeClock, FlakyStore
from riktiga_cache import CacheError, CacheErrorCodes, PersistentCache

WEEK = timedelta(days=7)


async def test_set_and_get(store: FlakyStore, clock: FakeClock) -> None:
    """Stored values come back while fresh."""
    cache = PersistentCache(store, "social_feed", WEEK, clock=clock)
    await cache.set("feed", [{"id": "p1"}], owner="user-1")
    assert await cache.get("feed", owner="user-1") == [{"id": "p1"}]
    assert await cache.is_valid("feed", owner="user-1") is True


async def test_record_format(store: FlakyStore, clock: FakeClock) -> None:
    """Entries are stored as {fetchedAt, value} under a namespaced key."""
    cache = PersistentCache(store, "weekly_stats", WEEK, clock=clock)
    await cache.set("stats", {"km": 12.5}, owner="user-1")
    assert await store.get("cached:weekly_stats:user-1:stats") == {
        "fetchedAt": "2025-01-08T12:00:00+00:00",
        "value": {"km": 12.5},
    }
    await cache.set("leaderboard", [1, 2])
    assert await store.get("cached:weekly_stats:~shared:leaderboard") is not None


async def test_expired_entry(store: FlakyStore, clock: FakeClock) -> None:
    """Expired entries read as None unless allow_expired is set."""
    cache = PersistentCache(store, "workouts", timedelta(hours=6), clock=clock)
    await cache.set("list", ["w1"], owner="user-1")
    clock.advance(hours=6)
    assert await cache.get("list", owner="user-1") is None
    assert await cache.is_valid("list", owner="user-1") is False
    assert await cache.get("list", owner="user-1", allow_expired=True) == ["w1"]


async def test_survives_new_instance(store: FlakyStore, clock: FakeClock) -> None:
    """Another cache over the same store and namespace sees the entry."""
    await PersistentCache(store, "followers", WEEK, clock=clock).set("list", ["bob"], owner="alice")
    assert await PersistentCache(store, "followers", WEEK, clock=clock).get("list", owner="alice") == ["bob"]


async def test_clear_owner_only_touches_that_owner(store: FlakyStore, clock: FakeClock) -> None:
    """clear_owner removes one owner's entries in this namespace."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    other = PersistentCache(store, "other", WEEK, clock=clock)
    await cache.set("feed", [1], owner="alice")
    await cache.set("stats", {}, owner="alice")
    await cache.set("feed", [2], owner="bob")
    await other.set("feed", [3], owner="alice")
    await store.set("lastPopupAdShown", 1.0)

    assert await cache.clear_owner("alice") == 2
    assert await cache.get("feed", owner="alice") is None
    assert await cache.get("feed", owner="bob") == [2]
    assert await other.get("feed", owner="alice") == [3]
    assert await store.get("lastPopupAdShown") == 1.0


async def test_clear_all(store: FlakyStore, clock: FakeClock) -> None:
    """clear_all removes every entry of the namespace."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    await cache.set("feed", [1], owner="alice")
    await cache.set("users", [2])
    assert await cache.clear_all() == 2
    assert await store.keys() == []


async def test_invalidate(store: FlakyStore, clock: FakeClock) -> None:
    """invalidate removes a single entry."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    await cache.set("feed", [1])
    assert await cache.invalidate("feed") is True
    assert await cache.get("feed") is None


async def test_corrupt_record_reads_as_missing(clock: FakeClock) -> None:
    """A record without a timestamp is ignored."""
    store = FlakyStore({"cached:app:~shared:feed": {"value": [1]}})
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    assert await cache.get("feed") is None


async def test_store_failures_are_absorbed(store: FlakyStore, clock: FakeClock) -> None:
    """Failing reads and writes never raise."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    store.fail_writes = True
    await cache.set("feed", [1])
    store.fail_reads = True
    assert await cache.get("feed") is None
    assert await cache.clear_all() == 0


async def test_unserializable_value_rejected(store: FlakyStore, clock: FakeClock) -> None:
    """Values that are not JSON compatible raise SERIALIZATION_ERROR."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    with pytest.raises(CacheError) as exc_info:
        await cache.set("feed", {1, 2})
    assert exc_info.value.code == CacheErrorCodes.SERIALIZATION_ERROR


@pytest.mark.parametrize("namespace", ["", "a:b"])
def test_invalid_namespace(store: FlakyStore, namespace: str) -> None:
    """Empty namespaces and ones containing ':' are rejected."""
    with pytest.raises(CacheError) as exc_info:
        PersistentCache(store, namespace, WEEK)
    assert exc_info.value.code == CacheErrorCodes.INVALID_NAMESPACE


@pytest.mark.parametrize("owner", ["a:b", "~shared"])
async def test_invalid_owner(store: FlakyStore, owner: str) -> None:
    """Owners that could alias another owner's entries are rejected."""
    cache = PersistentCache(store, "app", WEEK)
    with pytest.raises(CacheError) as exc_info:
        await cache.set("profile", {}, owner=owner)
    assert exc_info.value.code == CacheErrorCodes.INVALID_OWNER
    with pytest.raises(CacheError):
        await cache.clear_owner(owner)


async def test_clear_owner_does_not_match_longer_owner(store: FlakyStore, clock: FakeClock) -> None:
    """Clearing owner "a" leaves owner "ab" alone."""
    cache = PersistentCache(store, "app", WEEK, clock=clock)
    await cache.set("profile", {"name": "A"}, owner="a")
    await cache.set("profile", {"name": "AB"}, owner="ab")
    assert await cache.clear_owner("a") == 1
    assert await cache.get("profile", owner="ab") == {"name": "AB"}
