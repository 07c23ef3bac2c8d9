"""Ad backend client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from .exceptions import AdClientError, AdClientErrorCodes
from .models import AdCampaign, AdClientConfig, AdFormat


class AdClient(ABC):
    """Abstract ad backend client."""

    @abstractmethod
    async def fetch_ads(self, format: AdFormat) -> list[AdCampaign]: ...

    @abstractmethod
    async def track_click(self, campaign_id: str) -> None: ...


class HttpAdClient(AdClient):
    """Calls the get-active-ads and track-ad-click backend functions over httpx."""

    def __init__(self, config: AdClientConfig) -> None:
        self._config = config
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
            headers["apikey"] = config.api_key
        self._headers = headers

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.functions_url,
            headers=self._headers,
            timeout=self._config.timeout_seconds,
        )

    def _handle_error(self, resp: httpx.Response, context: str) -> None:
        if resp.status_code >= 400:
            raise AdClientError(
                code=AdClientErrorCodes.HTTP_ERROR,
                message=f"{context}: HTTP {resp.status_code}: {resp.text}",
            )

    async def fetch_ads(self, format: AdFormat) -> list[AdCampaign]:
        """Return the active campaigns for one placement."""
        try:
            async with self._make_client() as client:
                resp = await client.post("/get-active-ads", json={"format": format.value})
        except httpx.HTTPError as e:
            raise AdClientError(
                code=AdClientErrorCodes.HTTP_ERROR,
                message=f"Failed to fetch {format.value} ads: {e}",
                cause=e,
            ) from e
        self._handle_error(resp, f"fetch_ads({format.value})")
        try:
            data: dict[str, Any] = resp.json()
            return [AdCampaign.from_dict(item) for item in data.get("ads") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise AdClientError(
                code=AdClientErrorCodes.DECODE_ERROR,
                message=f"Malformed {format.value} ads response: {e}",
                cause=e,
            ) from e

    async def track_click(self, campaign_id: str) -> None:
        """Record a click on a campaign."""
        try:
            async with self._make_client() as client:
                resp = await client.post("/track-ad-click", json={"campaign_id": campaign_id})
        except httpx.HTTPError as e:
            raise AdClientError(
                code=AdClientErrorCodes.HTTP_ERROR,
                message=f"Failed to track click on {campaign_id}: {e}",
                cause=e,
            ) from e
        self._handle_error(resp, f"track_click({campaign_id})")


class InMemoryAdClient(AdClient):
    """In-memory ad client for testing."""

    def __init__(self) -> None:
        self.ads: dict[AdFormat, list[AdCampaign]] = {f: [] for f in AdFormat}
        self.clicks: list[str] = []
        self.fetch_count: dict[AdFormat, int] = {f: 0 for f in AdFormat}
        self.failures_remaining = 0

    async def fetch_ads(self, format: AdFormat) -> list[AdCampaign]:
        self.fetch_count[format] += 1
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise AdClientError(AdClientErrorCodes.HTTP_ERROR, "simulated failure")
        return list(self.ads[format])

    async def track_click(self, campaign_id: str) -> None:
        self.clicks.append(campaign_id)
