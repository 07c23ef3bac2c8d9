"""UsageCounter tests."""

import asyncio

from conftest import FlakyStore
from riktiga_quota import Feature, UsageCounter


async def test_increment_persists(store: FlakyStore) -> None:
    """Increments are written as a native integer."""
    counter = UsageCounter(store, Feature.CHAT, "user-1")
    assert await counter.count() == 0
    assert await counter.increment() == 1
    assert await counter.increment() == 2
    assert await store.get("chat_count_user-1") == 2


async def test_count_survives_new_instance(store: FlakyStore) -> None:
    """A fresh counter over the same store reads the previous count."""
    await UsageCounter(store, Feature.CHAT, "user-1").increment()
    assert await UsageCounter(store, Feature.CHAT, "user-1").count() == 1


async def test_reset_removes_count(store: FlakyStore) -> None:
    """reset drops the stored value."""
    counter = UsageCounter(store, Feature.CHAT, "user-1")
    await counter.increment()
    await counter.reset()
    assert await counter.count() == 0
    assert await store.get("chat_count_user-1") is None


async def test_anonymous_counts_in_memory(store: FlakyStore) -> None:
    """Anonymous counts are never written."""
    counter = UsageCounter(store, Feature.CHAT)
    await counter.increment()
    assert await counter.count() == 1
    assert await store.keys() == []


async def test_set_owner_switches_counter(store: FlakyStore) -> None:
    """Owners keep separate counts."""
    counter = UsageCounter(store, Feature.CHAT, "alice")
    await counter.increment()
    await counter.set_owner("bob")
    assert await counter.count() == 0
    await counter.set_owner("alice")
    assert await counter.count() == 1


async def test_corrupt_value_reads_as_zero() -> None:
    """A non-integer value is treated as no count."""
    counter = UsageCounter(FlakyStore({"chat_count_user-1": "lots"}), Feature.CHAT, "user-1")
    assert await counter.count() == 0


async def test_write_failure_keeps_memory_count(store: FlakyStore) -> None:
    """A failing store does not raise from increment."""
    counter = UsageCounter(store, Feature.CHAT, "user-1")
    store.fail_writes = True
    assert await counter.increment() == 1
    assert await counter.increment() == 2


async def test_concurrent_increments(store: FlakyStore) -> None:
    """Parallel increments are not lost."""
    counter = UsageCounter(store, Feature.CHAT, "user-1")
    await asyncio.gather(*(counter.increment() for _ in range(10)))
    assert await counter.count() == 10
