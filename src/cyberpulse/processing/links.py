from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any, Callable
from urllib.parse import parse_qsl, quote_plus, urlencode, urljoin, urlparse, urlunparse

import requests

from cyberpulse.core.constants import (
    CVE_SEARCH_TEMPLATE,
    GENERIC_SEARCH_SUFFIX,
    GENERIC_SEARCH_TEMPLATE,
    PUBLISHER_SEARCH_TEMPLATES,
    TRACKING_PARAM_PREFIXES,
    normalize_source_name,
)

log = logging.getLogger(__name__)

_QUERY_NOISE_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")

ProbeFunc = Callable[[str, float], bool]


def origin_of(url: str) -> str:
    """scheme://host of a feed URL, or "" when it has no host."""
    try:
        p = urlparse(url or "")
    except Exception:
        return ""
    if not p.scheme or not p.netloc:
        return ""
    return f"{p.scheme}://{p.netloc}"


def strip_tracking_params(url: str, prefixes: tuple[str, ...] = TRACKING_PARAM_PREFIXES) -> str:
    """Drop query parameters whose name starts with a tracking prefix (case-insensitive)."""
    p = urlparse(url)
    if not p.query:
        return url
    lowered = tuple(x.lower() for x in prefixes)
    kept = [
        (k, v)
        for (k, v) in parse_qsl(p.query, keep_blank_values=True)
        if not k.lower().startswith(lowered)
    ]
    return urlunparse((p.scheme, p.netloc, p.path, p.params, urlencode(kept, doseq=True), p.fragment))


def normalize_candidate(candidate: Any, feed_url: str = "") -> str:
    """Turn a raw feed link into an absolute http(s) URL, or "" when it cannot be one."""
    if not isinstance(candidate, str):
        return ""
    raw = candidate.strip()
    if not raw:
        return ""
    if raw.startswith("//"):
        raw = f"https:{raw}"
    elif raw.startswith("/"):
        origin = origin_of(feed_url)
        if not origin:
            return ""
        raw = urljoin(origin + "/", raw)
    elif "://" not in raw:
        # "tag:..." / "urn:..." guids are identifiers, not hosts; "host:8080" is fine
        host, sep, port = raw.split("/", 1)[0].partition(":")
        if sep and not (host and port.isdigit()):
            return ""
        raw = f"https://{raw}"
    try:
        p = urlparse(raw)
    except Exception:
        return ""
    if p.scheme.lower() not in {"http", "https"}:
        return ""
    if not p.netloc or any(ch.isspace() for ch in p.netloc):
        return ""
    return strip_tracking_params(raw)


def probe_url(url: str, timeout: float) -> bool:
    """HEAD the URL; 2xx and 405 (HEAD not allowed) count as reachable."""
    try:
        resp = requests.head(url, timeout=timeout, allow_redirects=True)
    except Exception as e:
        log.debug("probe failed for %s: %s", url, e)
        return False
    return 200 <= resp.status_code < 300 or resp.status_code == 405


def _search_query(title: str) -> str:
    t = _QUERY_NOISE_RE.sub(" ", (title or "")[:50])
    return quote_plus(_WS_RE.sub(" ", t).strip())


def build_fallback_url(*, source: str, title: str, cve_ids: list[str] | None = None) -> str:
    """Search URL for an item without a usable direct link. Never empty."""
    src = normalize_source_name(source)
    for key, template in PUBLISHER_SEARCH_TEMPLATES:
        if key in src:
            return template.format(query=_search_query(title))
    if cve_ids:
        return CVE_SEARCH_TEMPLATE.format(query=quote_plus(cve_ids[0]))
    query = f"{(title or '')[:50]} {GENERIC_SEARCH_SUFFIX}".strip()
    return GENERIC_SEARCH_TEMPLATE.format(query=quote_plus(query))


class LinkResolver:
    def __init__(
        self,
        *,
        probe_enabled: bool = False,
        probe_func: ProbeFunc = probe_url,
        probe_timeout_sec: float = 5.0,
        min_probe_interval_sec: float = 1.0,
        sleep_func: Callable[[float], None] = time.sleep,
        clock_func: Callable[[], float] = time.monotonic,
    ) -> None:
        self._probe_enabled = probe_enabled
        self._probe = probe_func
        self._probe_timeout_sec = probe_timeout_sec
        self._min_probe_interval_sec = max(0.0, min_probe_interval_sec)
        self._sleep = sleep_func
        self._clock = clock_func
        self._last_probe_by_host: dict[str, float] = {}
        self._lock = threading.Lock()

    def _wait_for_host(self, host: str) -> None:
        with self._lock:
            last = self._last_probe_by_host.get(host)
            now = self._clock()
            if last is not None:
                wait = self._min_probe_interval_sec - (now - last)
                if wait > 0:
                    self._sleep(wait)
                    now = self._clock()
            self._last_probe_by_host[host] = now

    def _is_reachable(self, url: str) -> bool:
        if not self._probe_enabled:
            return True
        self._wait_for_host(urlparse(url).netloc.lower())
        try:
            return bool(self._probe(url, self._probe_timeout_sec))
        except Exception:
            log.exception("link probe raised for %s", url)
            return False

    def resolve(
        self,
        candidates: list[Any],
        *,
        feed_url: str = "",
        source: str = "",
        title: str = "",
        cve_ids: list[str] | None = None,
    ) -> tuple[str, str]:
        """Return ``(link, kind)`` where kind is "direct" or "fallback"."""
        for candidate in candidates or []:
            url = normalize_candidate(candidate, feed_url)
            if not url:
                continue
            if self._is_reachable(url):
                return url, "direct"
            log.info("link unreachable, trying next candidate: %s", url)
        return build_fallback_url(source=source, title=title, cve_ids=cve_ids), "fallback"
