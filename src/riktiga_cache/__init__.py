"""riktiga cache library."""

from .cooldown import CooldownGate
from .exceptions import CacheError, CacheErrorCodes
from .memory import DEFAULT_KEY, TimeBoundedCache
from .models import CacheEntry
from .persistent import PersistentCache

__all__ = [
    "DEFAULT_KEY",
    "CacheEntry",
    "CacheError",
    "CacheErrorCodes",
    "CooldownGate",
    "PersistentCache",
    "TimeBoundedCache",
]
