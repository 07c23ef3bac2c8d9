"""Quota data models."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Union

from .exceptions import QuotaError, QuotaErrorCodes

# Storage key segments naming a window mode or a counter.
_MODE_SEGMENT = re.compile(r"^(weekly|lifetime|count|fixed\d+s)$")


class Feature(str, Enum):
    """Quota-gated features of the client."""

    AI_SCAN = "ai_scan"
    BARCODE_SCAN = "barcode_scan"
    CHAT = "chat"


class WindowKind(str, Enum):
    """How a counting window resets."""

    WEEKLY = "weekly"
    LIFETIME = "lifetime"
    FIXED_DURATION = "fixed_duration"


@dataclass(frozen=True)
class WindowMode:
    """Window reset rule. Build with ``weekly()``, ``lifetime()`` or ``fixed_duration()``."""

    kind: WindowKind
    duration: timedelta | None = None

    def __post_init__(self) -> None:
        if self.kind is WindowKind.FIXED_DURATION:
            if self.duration is None or self.duration <= timedelta(0):
                raise QuotaError(
                    QuotaErrorCodes.INVALID_POLICY,
                    f"fixed_duration window needs a positive duration, got {self.duration}",
                )
        elif self.duration is not None:
            raise QuotaError(
                QuotaErrorCodes.INVALID_POLICY,
                f"{self.kind.value} window does not take a duration",
            )

    @classmethod
    def weekly(cls) -> WindowMode:
        return cls(WindowKind.WEEKLY)

    @classmethod
    def lifetime(cls) -> WindowMode:
        return cls(WindowKind.LIFETIME)

    @classmethod
    def fixed_duration(cls, duration: timedelta) -> WindowMode:
        return cls(WindowKind.FIXED_DURATION, duration)

    @property
    def segment(self) -> str:
        """Storage key segment naming this mode."""
        if self.kind is WindowKind.FIXED_DURATION:
            assert self.duration is not None
            return f"fixed{int(self.duration.total_seconds())}s"
        return self.kind.value


@dataclass(frozen=True)
class Scoped:
    """An authenticated subject whose usage is persisted."""

    key: str

    def __post_init__(self) -> None:
        if not self.key:
            raise QuotaError(QuotaErrorCodes.INVALID_OWNER, "owner key must not be empty")
        if self.key.startswith("~") or ":" in self.key:
            raise QuotaError(
                QuotaErrorCodes.INVALID_OWNER,
                f"owner key must not start with '~' or contain ':': {self.key}",
            )


@dataclass(frozen=True)
class Anonymous:
    """No authenticated subject. Usage is never persisted."""


ANONYMOUS = Anonymous()

Owner = Union[Scoped, Anonymous]


def as_owner(value: Owner | str | None) -> Owner:
    """Normalise a raw owner identifier into an Owner variant."""
    if value is None:
        return ANONYMOUS
    if isinstance(value, (Scoped, Anonymous)):
        return value
    return Scoped(value)


def feature_name(feature: Feature | str) -> str:
    return feature.value if isinstance(feature, Feature) else str(feature)


def check_feature(feature: Feature | str) -> str:
    """Return the feature name, rejecting names that would make storage keys ambiguous.

    Keys read ``{feature}_{mode}_{owner}``. When no ``_``-separated part of a
    feature name looks like a mode segment, the first such part of a key is
    its mode and the key decodes one way only.
    """
    name = feature_name(feature)
    if not name or any(_MODE_SEGMENT.match(part) for part in name.split("_")):
        raise QuotaError(QuotaErrorCodes.INVALID_POLICY, f"invalid feature name: {name!r}")
    return name


@dataclass(frozen=True)
class QuotaPolicy:
    """Static quota configuration for one feature."""

    feature: Feature | str
    limit: int
    window: WindowMode
    legacy_keys: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        check_feature(self.feature)
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise QuotaError(
                QuotaErrorCodes.INVALID_POLICY,
                f"limit must be a positive integer, got {self.limit!r}",
            )


@dataclass(frozen=True)
class QuotaWindow:
    """One counting period for one (feature, owner) pair."""

    owner: Owner
    window_start: datetime
    used: int = 0

    def incremented(self) -> QuotaWindow:
        return replace(self, used=self.used + 1)

    def to_record(self) -> dict[str, Any]:
        return {"windowStart": self.window_start.isoformat(), "used": self.used}


def decode_window(owner: Owner, raw: Any) -> QuotaWindow | None:
    """Decode a stored record. Anything malformed reads as no record."""
    if not isinstance(raw, dict):
        return None
    used = raw.get("used")
    start = raw.get("windowStart")
    if isinstance(used, bool) or not isinstance(used, int) or used < 0:
        return None
    if not isinstance(start, str):
        return None
    try:
        window_start = datetime.fromisoformat(start)
    except ValueError:
        return None
    return QuotaWindow(owner=owner, window_start=window_start, used=used)


@dataclass
class QuotaStatus:
    """Snapshot reported to callers."""

    feature: str
    used: int
    limit: int
    window_start: datetime

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def allowed(self) -> bool:
        return self.used < self.limit
