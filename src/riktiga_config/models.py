"""Config models (pydantic BaseModel)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from riktiga_quota import QuotaError, check_feature


class AppSection(BaseModel):
    """Application settings."""

    name: str = "riktiga"
    environment: str = "development"


class LogSection(BaseModel):
    """Log settings."""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class StorageSection(BaseModel):
    """Key-value store settings."""

    path: str = "riktiga_store.json"


class QuotaSection(BaseModel):
    """One quota-gated feature."""

    limit: int = Field(gt=0)
    window: Literal["weekly", "lifetime", "fixed_duration"] = "lifetime"
    duration_seconds: int | None = Field(default=None, gt=0)
    legacy_keys: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_duration(self) -> QuotaSection:
        if self.window == "fixed_duration" and self.duration_seconds is None:
            raise ValueError("fixed_duration window requires duration_seconds")
        if self.window != "fixed_duration" and self.duration_seconds is not None:
            raise ValueError(f"{self.window} window does not take duration_seconds")
        return self

    @field_validator("legacy_keys")
    @classmethod
    def _check_legacy_keys(cls, value: list[str]) -> list[str]:
        for template in value:
            if "{owner}" not in template:
                raise ValueError(f"legacy key template must contain {{owner}}: {template}")
        return value


def _default_quotas() -> dict[str, QuotaSection]:
    return {
        "ai_scan": QuotaSection(
            limit=3,
            window="lifetime",
            legacy_keys=["ai_scan_usage_total_{owner}", "ai_scan_usage_{owner}"],
        ),
        "barcode_scan": QuotaSection(
            limit=1,
            window="lifetime",
            legacy_keys=["barcode_scan_usage_total_{owner}"],
        ),
    }


class RetrySection(BaseModel):
    """Retry settings."""

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=0.5, ge=0.0)
    backoff_multiplier: float = Field(default=1.5, gt=1.0)
    max_delay: float | None = Field(default=None, ge=0.0)
    jitter: bool = False


class CacheSection(BaseModel):
    """Cache lifetimes in seconds."""

    ad_ttl_seconds: int = Field(default=300, gt=0)
    popup_cooldown_seconds: int = Field(default=86400, gt=0)
    app_cache_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, gt=0)
    personal_record_ttl_seconds: int = Field(default=600, gt=0)


class AdsSection(BaseModel):
    """Backend function endpoint settings."""

    functions_url: str = "http://localhost:54321/functions/v1"
    api_key: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class GuardConfig(BaseModel):
    """Whole configuration."""

    app: AppSection = Field(default_factory=AppSection)
    log: LogSection = Field(default_factory=LogSection)
    storage: StorageSection = Field(default_factory=StorageSection)
    quotas: dict[str, QuotaSection] = Field(default_factory=_default_quotas)
    retry: RetrySection = Field(default_factory=RetrySection)
    cache: CacheSection = Field(default_factory=CacheSection)
    ads: AdsSection = Field(default_factory=AdsSection)

    @field_validator("quotas")
    @classmethod
    def _check_feature_names(cls, value: dict[str, QuotaSection]) -> dict[str, QuotaSection]:
        for name in value:
            try:
                check_feature(name)
            except QuotaError as e:
                raise ValueError(str(e)) from e
        return value
