"""riktiga usage quota library."""

from .counter import UsageCounter
from .exceptions import QuotaError, QuotaErrorCodes
from .keys import ANONYMOUS_SEGMENT, counter_key, storage_key
from .manager import QuotaManager
from .model import (
    ANONYMOUS,
    Anonymous,
    Feature,
    Owner,
    QuotaPolicy,
    QuotaStatus,
    QuotaWindow,
    Scoped,
    WindowKind,
    WindowMode,
    as_owner,
    check_feature,
)
from .window import Clock, is_expired, is_fresh, roll, utc_now, week_start

__all__ = [
    "ANONYMOUS",
    "ANONYMOUS_SEGMENT",
    "Anonymous",
    "Clock",
    "Feature",
    "Owner",
    "QuotaError",
    "QuotaErrorCodes",
    "QuotaManager",
    "QuotaPolicy",
    "QuotaStatus",
    "QuotaWindow",
    "Scoped",
    "UsageCounter",
    "WindowKind",
    "WindowMode",
    "as_owner",
    "check_feature",
    "counter_key",
    "is_expired",
    "is_fresh",
    "roll",
    "storage_key",
    "utc_now",
    "week_start",
]
