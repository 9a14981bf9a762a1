from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence
from urllib.parse import quote, urlparse

import feedparser
import requests

from cyberpulse.core.constants import DEFAULT_SOURCE_NAME, SOURCE_NAME_MAP
from cyberpulse.processing.parsing import EntryParser
from cyberpulse.processing.types import Article, FeedSource, ParseFunc
from cyberpulse.scrapers.exceptions import FeedFetchError, FeedParseError
from cyberpulse.scrapers.feed_fetcher_config import FeedFetcherConfig
from cyberpulse.utils import clean_text

logger = logging.getLogger(__name__)


def derive_source_name(feed_url: str, override: Optional[str] = None, feed_title: Optional[str] = None) -> str:
    """Display name for a feed: explicit name, known hostname, feed <title>, then hostname."""
    if override and override.strip():
        return override.strip()
    try:
        host = (urlparse(feed_url).hostname or "").lower()
    except Exception:
        host = ""
    if host.startswith("www."):
        host = host[4:]
    if host in SOURCE_NAME_MAP:
        return SOURCE_NAME_MAP[host]
    title = clean_text(feed_title or "")
    if title:
        return title
    return host or DEFAULT_SOURCE_NAME


@dataclass(frozen=True)
class FeedResult:
    source: FeedSource
    articles: list[Article] = field(default_factory=list)
    ok: bool = False
    transport: str = ""  # "direct" or the proxy prefix that worked


class FeedFetcher:
    def __init__(
        self,
        config: Optional[FeedFetcherConfig] = None,
        *,
        get_func: Callable[..., Any] = requests.get,
        parse_func: ParseFunc = feedparser.parse,
        sleep_func: Callable[[float], None] = time.sleep,
        clock_func: Callable[[], float] = time.monotonic,
        entry_parser: Optional[EntryParser] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or FeedFetcherConfig()
        self._get = get_func
        self._parse = parse_func
        self._sleep = sleep_func
        self._clock = clock_func
        self._entry_parser = entry_parser or EntryParser()
        self._log = log or logger

    def transport_urls(self, url: str) -> list[tuple[str, str]]:
        """(label, url) pairs to try in order: direct first, then each proxy."""
        out = [("direct", url)]
        for proxy in self._config.proxies:
            out.append((proxy, f"{proxy}{quote(url, safe='')}"))
        return out

    def _retrieve(self, url: str) -> Any:
        headers = {"User-Agent": self._config.user_agent, "Accept": self._config.accept}
        try:
            resp = self._get(url, headers=headers, timeout=self._config.timeout_sec)
        except Exception as e:
            raise FeedFetchError(f"{type(e).__name__}: {e}") from e
        status = int(getattr(resp, "status_code", 0) or 0)
        if not 200 <= status < 300:
            raise FeedFetchError(f"HTTP {status}")
        body = getattr(resp, "content", None)
        if body is None:
            body = getattr(resp, "text", "")
        if not body:
            raise FeedFetchError("empty body")
        return body

    def _parse_body(self, body: Any) -> Any:
        try:
            parsed = self._parse(body)
        except Exception as e:
            raise FeedParseError(f"{type(e).__name__}: {e}") from e
        entries = getattr(parsed, "entries", None) or []
        if getattr(parsed, "bozo", 0) and not entries:
            exc = getattr(parsed, "bozo_exception", None)
            raise FeedParseError(f"malformed feed ({exc})" if exc else "malformed feed")
        return parsed

    def _to_articles(self, parsed: Any, source: FeedSource) -> list[Article]:
        feed_url = source["url"]
        feed_meta = getattr(parsed, "feed", None)
        feed_title = getattr(feed_meta, "title", None) if feed_meta is not None else None
        source_name = derive_source_name(feed_url, source.get("name"), feed_title)
        entries = list(getattr(parsed, "entries", None) or [])[: self._config.max_entries_per_feed]
        articles: list[Article] = []
        for entry in entries:
            article = self._entry_parser.parse_entry(entry, feed_url=feed_url, source_name=source_name)
            if article is not None:
                articles.append(article)
        return articles

    def fetch_result(self, source: FeedSource) -> FeedResult:
        feed_url = source["url"]
        for label, transport_url in self.transport_urls(feed_url):
            try:
                parsed = self._parse_body(self._retrieve(transport_url))
            except (FeedFetchError, FeedParseError) as e:
                self._log.info("feed alternative failed (%s): %s %s", label, feed_url, e)
                continue
            try:
                articles = self._to_articles(parsed, source)
            except Exception:
                self._log.exception("feed entries could not be normalized: %s", feed_url)
                return FeedResult(source=source)
            self._log.info("feed ok (%s): %s entries=%d", label, feed_url, len(articles))
            return FeedResult(source=source, articles=articles, ok=True, transport=label)
        self._log.warning("all transport alternatives failed: %s", feed_url)
        return FeedResult(source=source)

    def fetch(self, source: FeedSource) -> list[Article]:
        """Articles from one feed. Never raises; total failure yields []."""
        return self.fetch_result(source).articles

    def fetch_many(self, sources: Sequence[FeedSource], max_workers: Optional[int] = None) -> list[FeedResult]:
        """Fetch every source in parallel; results come back in source order."""
        if not sources:
            return []
        stagger = max(0.0, self._config.stagger_sec)
        # start offsets count from submission, not from when a pool slot frees up
        started = self._clock()

        def _worker(idx: int, source: FeedSource) -> FeedResult:
            delay = started + idx * stagger - self._clock()
            if delay > 0:
                self._sleep(delay)
            return self.fetch_result(source)

        worker_count = max_workers if max_workers is not None else self._config.max_workers
        worker_count = max(1, min(worker_count, len(sources)))
        results: list[FeedResult] = [None] * len(sources)  # type: ignore[list-item]
        with ThreadPoolExecutor(max_workers=worker_count) as executor:
            future_map = {executor.submit(_worker, idx, src): idx for idx, src in enumerate(sources)}
            for future in as_completed(future_map):
                idx = future_map[future]
                try:
                    results[idx] = future.result()
                except Exception as exc:
                    self._log.exception("fetch_many error: %s", exc)
                    results[idx] = FeedResult(source=sources[idx])
        return results
