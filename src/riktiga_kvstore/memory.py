"""InMemoryKeyValueStore implementation."""

from __future__ import annotations

import copy

from .store import JsonValue, KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store for tests and anonymous sessions."""

    def __init__(self, initial: dict[str, JsonValue] | None = None) -> None:
        self._data: dict[str, JsonValue] = dict(initial or {})

    async def get(self, key: str) -> JsonValue | None:
        # Callers must not be able to mutate stored records in place.
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: JsonValue) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False

    async def keys(self) -> list[str]:
        return list(self._data)
