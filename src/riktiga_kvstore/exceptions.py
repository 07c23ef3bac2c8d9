"""kvstore exceptions."""

from __future__ import annotations


class KeyValueStoreError(Exception):
    """Base key-value store error."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class KeyValueStoreErrorCodes:
    """KeyValueStoreError codes."""

    READ_ERROR: str = "READ_ERROR"
    WRITE_ERROR: str = "WRITE_ERROR"
    SERIALIZATION_ERROR: str = "SERIALIZATION_ERROR"
