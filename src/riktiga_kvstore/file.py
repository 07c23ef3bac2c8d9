"""JsonFileKeyValueStore implementation."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import structlog

from .exceptions import KeyValueStoreError, KeyValueStoreErrorCodes
from .store import JsonValue, KeyValueStore

logger = structlog.get_logger(__name__)


class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store persisted as a single JSON document.

    The whole document is loaded on first access and rewritten on every
    change. Writes go to a temporary file in the same directory which then
    replaces the original, so a crash never leaves a half-written file. A file
    that does not hold a JSON object is moved to ``corrupt_path`` and the
    store starts over empty.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def corrupt_path(self) -> Path:
        return self._path.with_name(f"{self._path.name}.corrupt")

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self._path.exists():
            self._data = {}
            return self._data
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise KeyValueStoreError(
                code=KeyValueStoreErrorCodes.READ_ERROR,
                message=f"Failed to read store file: {self._path}",
                cause=e,
            ) from e
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            return self._recover(f"not valid JSON: {e}")
        if not isinstance(data, dict):
            return self._recover(f"root is {type(data).__name__}, not an object")
        self._data = data
        return self._data

    def _recover(self, reason: str) -> dict[str, Any]:
        """Move an unusable file aside and start from an empty document."""
        backup = self.corrupt_path
        try:
            os.replace(self._path, backup)
        except OSError as e:
            logger.error("kvstore_backup_failed", path=str(self._path), error=str(e))
            backup = None
        logger.error(
            "kvstore_file_corrupt",
            path=str(self._path),
            reason=reason,
            backup=str(backup) if backup else None,
        )
        self._data = {}
        return self._data

    def _flush(self, data: dict[str, Any]) -> None:
        try:
            payload = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise KeyValueStoreError(
                code=KeyValueStoreErrorCodes.SERIALIZATION_ERROR,
                message=f"Value is not JSON serializable: {e}",
                cause=e,
            ) from e
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as e:
            raise KeyValueStoreError(
                code=KeyValueStoreErrorCodes.WRITE_ERROR,
                message=f"Failed to write store file: {self._path}",
                cause=e,
            ) from e
        finally:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)

    def _get(self, key: str) -> JsonValue | None:
        with self._lock:
            value = self._load().get(key)
            # Round-trip so callers never share structure with the cached document.
            return json.loads(json.dumps(value)) if value is not None else None

    def _set(self, key: str, value: JsonValue) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = value
            self._flush(data)
            self._data = data

    def _remove(self, key: str) -> bool:
        with self._lock:
            data = dict(self._load())
            if key not in data:
                return False
            del data[key]
            self._flush(data)
            self._data = data
            return True

    def _keys(self) -> list[str]:
        with self._lock:
            return list(self._load())

    async def get(self, key: str) -> JsonValue | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: JsonValue) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> bool:
        return await asyncio.to_thread(self._remove, key)

    async def keys(self) -> list[str]:
        return await asyncio.to_thread(self._keys)
