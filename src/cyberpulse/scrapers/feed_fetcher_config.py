from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from cyberpulse.core.config import _env_float, _env_int, _parse_csv_env

DEFAULT_CORS_PROXIES: Tuple[str, ...] = (
    "https://api.allorigins.win/raw?url=",
    "https://corsproxy.io/?",
    "https://api.codetabs.com/v1/proxy?quest=",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/121.0.0.0 Safari/537.36"
)


def _default_proxies() -> Tuple[str, ...]:
    configured = _parse_csv_env("CORS_PROXIES")
    if os.getenv("CORS_PROXIES") is not None and not configured:
        # CORS_PROXIES="" disables proxies entirely
        return ()
    return tuple(configured) or DEFAULT_CORS_PROXIES


@dataclass(frozen=True)
class FeedFetcherConfig:
    timeout_sec: float = _env_float("FEED_FETCH_TIMEOUT_SEC", 10.0)
    max_entries_per_feed: int = _env_int("MAX_ENTRIES_PER_FEED", 15)
    stagger_sec: float = _env_float("FEED_FETCH_STAGGER_SEC", 0.5)
    max_workers: int = _env_int("FEED_FETCH_MAX_WORKERS", 6)
    user_agent: str = os.getenv("FEED_FETCH_USER_AGENT", DEFAULT_USER_AGENT)
    accept: str = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"
    proxies: Tuple[str, ...] = field(default_factory=_default_proxies)
