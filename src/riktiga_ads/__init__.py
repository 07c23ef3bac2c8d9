"""riktiga ads library."""

from .client import AdClient, HttpAdClient, InMemoryAdClient
from .exceptions import AdClientError, AdClientErrorCodes
from .models import AdCampaign, AdClientConfig, AdFormat, AdServiceConfig
from .service import AdService

__all__ = [
    "AdCampaign",
    "AdClient",
    "AdClientConfig",
    "AdClientError",
    "AdClientErrorCodes",
    "AdFormat",
    "AdService",
    "AdServiceConfig",
    "HttpAdClient",
    "InMemoryAdClient",
]
