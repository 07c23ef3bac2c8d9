"""cache exceptions."""

from __future__ import annotations


class CacheError(Exception):
    """Base cache error."""

    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class CacheErrorCodes:
    """CacheError codes."""

    INVALID_TTL: str = "INVALID_TTL"
    INVALID_NAMESPACE: str = "INVALID_NAMESPACE"
    INVALID_OWNER: str = "INVALID_OWNER"
    SERIALIZATION_ERROR: str = "SERIALIZATION_ERROR"
