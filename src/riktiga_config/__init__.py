"""riktiga config library."""

from .exceptions import ConfigError, ConfigErrorCodes
from .loader import from_dict, load, overlay
from .models import (
    AdsSection,
    AppSection,
    CacheSection,
    GuardConfig,
    LogSection,
    QuotaSection,
    RetrySection,
    StorageSection,
)

__all__ = [
    "AdsSection",
    "AppSection",
    "CacheSection",
    "ConfigError",
    "ConfigErrorCodes",
    "GuardConfig",
    "LogSection",
    "QuotaSection",
    "RetrySection",
    "StorageSection",
    "from_dict",
    "load",
    "overlay",
]
