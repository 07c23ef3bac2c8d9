"""ads client exceptions."""

from __future__ import annotations


class AdClientError(Exception):
    """Base ad client error."""

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


class AdClientErrorCodes:
    """AdClientError codes."""

    HTTP_ERROR: str = "HTTP_ERROR"
    DECODE_ERROR: str = "DECODE_ERROR"
