"""config exceptions."""

from __future__ import annotations

from pathlib import Path


class ConfigError(Exception):
    """Raised when a config file cannot be read, parsed or validated.

    ``path`` names the file at fault; it is None for configs built from a
    dict.
    """

    def __init__(
        self,
        code: str,
        message: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.path = path
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        where = f" [{self.path}]" if self.path is not None else ""
        return f"{self.code}: {super().__str__()}{where}"


class ConfigErrorCodes:
    """ConfigError codes."""

    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
