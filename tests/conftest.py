"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from riktiga_kvstore import (
    InMemoryKeyValueStore,
    KeyValueStoreError,
    KeyValueStoreErrorCodes,
)

# Wednesday of ISO week 2, 2025.
START = datetime(2025, 1, 8, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable wall clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose reads and writes can be switched off."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    async def get(self, key: str) -> Any:
        if self.fail_reads:
            raise KeyValueStoreError(KeyValueStoreErrorCodes.READ_ERROR, "store offline")
        return await super().get(key)

    async def set(self, key: str, value: Any) -> None:
        if self.fail_writes:
            raise KeyValueStoreError(KeyValueStoreErrorCodes.WRITE_ERROR, "disk full")
        self.writes += 1
        await super().set(key, value)

    async def remove(self, key: str) -> bool:
        if self.fail_writes:
            raise KeyValueStoreError(KeyValueStoreErrorCodes.WRITE_ERROR, "disk full")
        return await super().remove(key)

    async def keys(self) -> list[str]:
        if self.fail_reads:
            raise KeyValueStoreError(KeyValueStoreErrorCodes.READ_ERROR, "store offline")
        return await super().keys()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()
