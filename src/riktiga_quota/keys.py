"""Storage key namespacing."""

from __future__ import annotations

from .model import Anonymous, Feature, Owner, WindowMode, feature_name

ANONYMOUS_SEGMENT = "~anonymous"


def owner_segment(owner: Owner) -> str:
    if isinstance(owner, Anonymous):
        return ANONYMOUS_SEGMENT
    return owner.key


def storage_key(feature: Feature | str, mode: WindowMode, owner: Owner) -> str:
    """``{feature}_{mode}_{owner}`` key of a quota window record."""
    return f"{feature_name(feature)}_{mode.segment}_{owner_segment(owner)}"


def counter_key(feature: Feature | str, owner: Owner) -> str:
    """``{feature}_count_{owner}`` key of a plain usage counter."""
    return f"{feature_name(feature)}_count_{owner_segment(owner)}"
