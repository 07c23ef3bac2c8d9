"""Quota window arithmetic.

Weekly windows use ISO weeks starting Monday 00:00 UTC everywhere. Naive
datetimes are read as UTC. A window whose start lies in the future is never
expired.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from .model import WindowKind, WindowMode

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def week_start(moment: datetime) -> datetime:
    """Monday 00:00 UTC of the ISO week containing moment."""
    current = to_utc(moment)
    monday = current.date() - timedelta(days=current.weekday())
    return datetime(monday.year, monday.month, monday.day, tzinfo=timezone.utc)


def start_of(mode: WindowMode, now: datetime) -> datetime:
    """Start of a brand new window opened at now."""
    if mode.kind is WindowKind.WEEKLY:
        return week_start(now)
    return to_utc(now)


def is_expired(mode: WindowMode, window_start: datetime, now: datetime) -> bool:
    start = to_utc(window_start)
    current = to_utc(now)
    if mode.kind is WindowKind.LIFETIME:
        return False
    if mode.kind is WindowKind.WEEKLY:
        return week_start(current) > week_start(start)
    assert mode.duration is not None
    return current - start >= mode.duration


def roll(mode: WindowMode, window_start: datetime, now: datetime) -> datetime:
    """Return the start of the window in effect at now."""
    if not is_expired(mode, window_start, now):
        return to_utc(window_start)
    return start_of(mode, now)


def is_fresh(fetched_at: datetime, ttl: timedelta, now: datetime) -> bool:
    """True while now - fetched_at < ttl."""
    return to_utc(now) - to_utc(fetched_at) < ttl
