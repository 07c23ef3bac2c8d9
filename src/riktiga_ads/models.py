"""Ad data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any


class AdFormat(str, Enum):
    """Ad placement."""

    FEED = "feed"
    BANNER = "banner"
    POPUP = "popup"


@dataclass
class AdCampaign:
    """An active ad campaign."""

    id: str
    format: AdFormat
    title: str
    description: str | None = None
    image_url: str | None = None
    cta_text: str | None = None
    cta_url: str | None = None

    @property
    def cta_label(self) -> str:
        return self.cta_text or "Läs mer"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdCampaign:
        return cls(
            id=str(data["id"]),
            format=AdFormat(data["format"]),
            title=data["title"],
            description=data.get("description"),
            image_url=data.get("image_url"),
            cta_text=data.get("cta_text"),
            cta_url=data.get("cta_url"),
        )


@dataclass
class AdClientConfig:
    """Backend function settings."""

    functions_url: str
    api_key: str = ""
    timeout_seconds: float = 10.0


@dataclass
class AdServiceConfig:
    """Ad caching settings."""

    cache_ttl: timedelta = timedelta(minutes=5)
    popup_cooldown: timedelta = timedelta(hours=24)
    popup_cooldown_key: str = "lastPopupAdShown"
