"""riktiga retry library."""

from .client import RetryExecutor, with_retry
from .models import RetrySpec

__all__ = [
    "RetryExecutor",
    "RetrySpec",
    "with_retry",
]
