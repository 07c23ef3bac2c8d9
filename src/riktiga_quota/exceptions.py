"""Quota exceptions."""

from __future__ import annotations


class QuotaError(Exception):
    """Base quota error.

    Raised for invalid configuration only. Reaching a limit is a normal state
    reported by ``can_use()`` and never raised.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class QuotaErrorCodes:
    """QuotaError codes."""

    INVALID_POLICY: str = "INVALID_POLICY"
    INVALID_OWNER: str = "INVALID_OWNER"
