"""Adoption of usage counts stored under older key layouts."""

from __future__ import annotations

import json
from typing import Any

import structlog

from riktiga_kvstore import KeyValueStore

from .model import Scoped

logger = structlog.get_logger(__name__)


def decode_legacy_count(raw: Any) -> int | None:
    """Read a count from a plain integer or an old window record."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if isinstance(raw, dict):
        raw = raw.get("scansUsed", raw.get("used"))
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        return None
    return raw


async def find_legacy_count(
    store: KeyValueStore,
    templates: tuple[str, ...],
    owner: Scoped,
) -> tuple[str, int] | None:
    """Return (legacy key, used) from the first readable legacy key."""
    for template in templates:
        key = template.format(owner=owner.key)
        raw = await store.get(key)
        if raw is None:
            continue
        used = decode_legacy_count(raw)
        if used is None:
            logger.warning("quota_legacy_record_ignored", key=key)
            continue
        return key, used
    return None
