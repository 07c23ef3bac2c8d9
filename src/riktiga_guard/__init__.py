"""riktiga guard: wiring of the quota, cache and retry libraries."""

from .services import (
    GuardServices,
    bootstrap,
    build_services,
    policy_from_section,
    retry_spec_from_section,
)

__all__ = [
    "GuardServices",
    "bootstrap",
    "build_services",
    "policy_from_section",
    "retry_spec_from_section",
]
