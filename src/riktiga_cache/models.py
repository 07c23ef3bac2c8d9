"""Cache entry model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from riktiga_quota.window import is_fresh

from .exceptions import CacheError, CacheErrorCodes

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the moment it was fetched."""

    value: T
    fetched_at: datetime

    def is_fresh(self, ttl: timedelta, now: datetime) -> bool:
        return is_fresh(self.fetched_at, ttl, now)

    def to_record(self) -> dict[str, Any]:
        return {"fetchedAt": self.fetched_at.isoformat(), "value": self.value}

    @classmethod
    def from_record(cls, raw: Any) -> CacheEntry[Any] | None:
        if not isinstance(raw, dict) or "value" not in raw:
            return None
        fetched_at = raw.get("fetchedAt")
        if not isinstance(fetched_at, str):
            return None
        try:
            return cls(value=raw["value"], fetched_at=datetime.fromisoformat(fetched_at))
        except ValueError:
            return None


def check_ttl(ttl: timedelta) -> timedelta:
    if ttl <= timedelta(0):
        raise CacheError(CacheErrorCodes.INVALID_TTL, f"ttl must be positive, got {ttl}")
    return ttl
