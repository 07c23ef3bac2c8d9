"""riktiga key-value store library."""

from .exceptions import KeyValueStoreError, KeyValueStoreErrorCodes
from .file import JsonFileKeyValueStore
from .memory import InMemoryKeyValueStore
from .store import JsonValue, KeyValueStore

__all__ = [
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "JsonValue",
    "KeyValueStore",
    "KeyValueStoreError",
    "KeyValueStoreErrorCodes",
]
