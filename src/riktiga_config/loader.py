"""Config file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError, ConfigErrorCodes
from .models import GuardConfig


def overlay(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base with an environment override laid over it.

    Mappings merge recursively and other values replace. A ``null`` in the
    override removes the key, so an environment can drop a quota or fall
    back to a built-in section.
    """
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if value is None:
            result.pop(key, None)
        elif isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = overlay(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code=ConfigErrorCodes.READ_FILE,
            message="Failed to read config file",
            path=path,
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {e}",
            path=path,
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message="Config root must be a mapping",
            path=path,
        )
    return data


def load(base_path: Path, env_path: Path | None = None) -> GuardConfig:
    """Load base_path, lay env_path over it when it exists, and validate."""
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = overlay(data, _read_yaml(env_path))
        return from_dict(data, path=env_path)
    return from_dict(data, path=base_path)


def from_dict(data: dict[str, Any], path: Path | None = None) -> GuardConfig:
    try:
        return GuardConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            code=ConfigErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            path=path,
            cause=e,
        ) from e
