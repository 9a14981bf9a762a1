from __future__ import annotations

import datetime
from typing import Any

from cyberpulse.utils import parse_datetime_utc


def to_utc_datetime(value: Any) -> datetime.datetime | None:
    return parse_datetime_utc(value)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def is_recent(value: Any, now: datetime.datetime | None = None, window_days: int = 7) -> bool:
    """True iff ``now - window < ts <= now``.

    The lower bound is exclusive and the upper bound inclusive, so an item
    exactly ``window_days`` old is dropped and an item stamped ``now`` kept.
    Missing, unparseable and future timestamps are rejected.
    """
    ts = to_utc_datetime(value)
    if ts is None:
        return False
    ref = to_utc_datetime(now) if now is not None else utc_now()
    if ref is None:
        return False
    lower = ref - datetime.timedelta(days=window_days)
    return lower < ts <= ref


def age_hours(value: Any, now: datetime.datetime | None = None) -> float | None:
    ts = to_utc_datetime(value)
    if ts is None:
        return None
    ref = to_utc_datetime(now) if now is not None else utc_now()
    if ref is None:
        return None
    return (ref - ts).total_seconds() / 3600.0


def format_age(value: Any, now: datetime.datetime | None = None) -> str:
    """Human readable age: "N minutes ago", "N hours ago", "Yesterday", "N days ago"."""
    ts = to_utc_datetime(value)
    if ts is None:
        return "Recent"
    ref = to_utc_datetime(now) if now is not None else utc_now()
    if ref is None:
        return "Recent"
    diff_sec = abs((ref - ts).total_seconds())
    days = int(diff_sec // 86400)
    hours = int(diff_sec // 3600)
    if days == 0:
        if hours == 0:
            return f"{int(diff_sec // 60)} minutes ago"
        return f"{hours} hours ago"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"
