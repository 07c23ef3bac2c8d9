"""KeyValueStore abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

JsonValue = Any
"""Any value json.dumps accepts: str, int, float, bool, None, list, dict."""


class KeyValueStore(ABC):
    """Durable key-value store scoped to one installation."""

    @abstractmethod
    async def get(self, key: str) -> JsonValue | None:
        """Return the value stored under key, or None."""
        ...

    @abstractmethod
    async def set(self, key: str, value: JsonValue) -> None:
        """Store value under key, replacing any previous value."""
        ...

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove key. True if something was removed."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """Return every stored key."""
        ...
