import threading

from cyberpulse.scrapers.feed_fetcher import FeedFetcher, derive_source_name
from cyberpulse.scrapers.feed_fetcher_config import FeedFetcherConfig

PROXY_A = "https://proxy-a.example/raw?url="
PROXY_B = "https://proxy-b.example/?"


class _Resp:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class _Meta:
    def __init__(self, title: str) -> None:
        self.title = title


class _Parsed:
    def __init__(self, entries: list, bozo: int = 0, title: str = "") -> None:
        self.entries = entries
        self.bozo = bozo
        self.bozo_exception = ValueError("bad xml") if bozo else None
        self.feed = _Meta(title)


def _entry(title: str, link: str, **extra: object) -> dict:
    entry = {"title": title, "link": link, "published": "Mon, 01 Jan 2024 12:00:00 GMT"}
    entry.update(extra)
    return entry


def _config(**overrides: object) -> FeedFetcherConfig:
    values = {"proxies": (PROXY_A, PROXY_B), "stagger_sec": 0.0, "max_entries_per_feed": 15}
    values.update(overrides)
    return FeedFetcherConfig(**values)


def test_transport_urls_direct_then_proxies_in_order() -> None:
    fetcher = FeedFetcher(_config())
    urls = fetcher.transport_urls("https://ex.com/feed?a=1")
    assert urls == [
        ("direct", "https://ex.com/feed?a=1"),
        (PROXY_A, PROXY_A + "https%3A%2F%2Fex.com%2Ffeed%3Fa%3D1"),
        (PROXY_B, PROXY_B + "https%3A%2F%2Fex.com%2Ffeed%3Fa%3D1"),
    ]


def test_proxy_used_when_direct_fails() -> None:
    calls: list[str] = []

    def _get(url: str, **kwargs: object) -> _Resp:
        calls.append(url)
        if url.startswith(PROXY_A):
            return _Resp(200, b"<rss/>")
        raise ConnectionError("blocked")

    fetcher = FeedFetcher(
        _config(),
        get_func=_get,
        parse_func=lambda body: _Parsed([_entry("Patch Tuesday", "https://ex.com/a")]),
    )
    result = fetcher.fetch_result({"url": "https://ex.com/feed"})
    assert result.ok is True
    assert result.transport == PROXY_A
    assert [a["title"] for a in result.articles] == ["Patch Tuesday"]
    assert len(calls) == 2


def test_every_alternative_failing_yields_empty_list() -> None:
    calls: list[str] = []

    def _get(url: str, **kwargs: object) -> _Resp:
        calls.append(url)
        return _Resp(503)

    fetcher = FeedFetcher(_config(), get_func=_get, parse_func=lambda body: _Parsed([]))
    assert fetcher.fetch({"url": "https://ex.com/feed"}) == []
    assert len(calls) == 3


def test_malformed_feed_tries_next_alternative() -> None:
    bodies = iter([_Parsed([], bozo=1), _Parsed([_entry("Breach", "https://ex.com/b")])])
    fetcher = FeedFetcher(
        _config(),
        get_func=lambda url, **kw: _Resp(200, b"<xml"),
        parse_func=lambda body: next(bodies),
    )
    result = fetcher.fetch_result({"url": "https://ex.com/feed"})
    assert result.ok is True
    assert result.transport == PROXY_A


def test_empty_body_is_a_failure() -> None:
    fetcher = FeedFetcher(
        _config(proxies=()),
        get_func=lambda url, **kw: _Resp(200, b""),
        parse_func=lambda body: _Parsed([_entry("x", "https://ex.com/x")]),
    )
    assert fetcher.fetch_result({"url": "https://ex.com/feed"}).ok is False


def test_entries_without_title_or_link_are_dropped_and_capped() -> None:
    entries = [
        _entry("", "https://ex.com/1"),
        {"title": "No link at all"},
        _entry("Keep one", "https://ex.com/2"),
        _entry("Keep two", "https://ex.com/3"),
        _entry("Beyond cap", "https://ex.com/4"),
    ]
    fetcher = FeedFetcher(
        _config(proxies=(), max_entries_per_feed=4),
        get_func=lambda url, **kw: _Resp(200, b"<rss/>"),
        parse_func=lambda body: _Parsed(entries),
    )
    articles = fetcher.fetch({"url": "https://ex.com/feed"})
    assert [a["title"] for a in articles] == ["Keep one", "Keep two"]
    assert articles[0]["publishedAt"].year == 2024
    assert articles[0]["feedUrl"] == "https://ex.com/feed"


def test_fetch_many_keeps_source_order_and_staggers() -> None:
    sleeps: list[float] = []
    lock = threading.Lock()

    def _sleep(sec: float) -> None:
        with lock:
            sleeps.append(sec)

    def _get(url: str, **kwargs: object) -> _Resp:
        if "bad" in url:
            return _Resp(500)
        return _Resp(200, url.encode())

    fetcher = FeedFetcher(
        _config(proxies=(), stagger_sec=0.5),
        get_func=_get,
        parse_func=lambda body: _Parsed([_entry(body.decode(), "https://ex.com/x")]),
        sleep_func=_sleep,
        clock_func=lambda: 100.0,
    )
    sources = [{"url": "https://one.example/feed"}, {"url": "https://bad.example/feed"}, {"url": "https://three.example/feed"}]
    results = fetcher.fetch_many(sources, max_workers=3)
    assert [r.source["url"] for r in results] == [s["url"] for s in sources]
    assert [r.ok for r in results] == [True, False, True]
    assert sorted(sleeps) == [0.5, 1.0]


def test_fetch_many_empty() -> None:
    assert FeedFetcher(_config()).fetch_many([]) == []


def test_derive_source_name() -> None:
    assert derive_source_name("https://ex.com/feed", "  Custom  ") == "Custom"
    assert derive_source_name("https://www.bleepingcomputer.com/feed/") == "BleepingComputer"
    assert derive_source_name("https://blog.example.net/rss", feed_title="Example &amp; Co") == "Example & Co"
    assert derive_source_name("https://blog.example.net/rss") == "blog.example.net"


def test_stagger_counts_time_already_spent_waiting() -> None:
    sleeps: list[float] = []
    lock = threading.Lock()

    def _sleep(sec: float) -> None:
        with lock:
            sleeps.append(sec)

    # submission happens at t=0; every worker starts after t=10
    ticks = iter([0.0])
    fetcher = FeedFetcher(
        _config(proxies=(), stagger_sec=0.5),
        get_func=lambda url, **kw: _Resp(200, b"<rss/>"),
        parse_func=lambda body: _Parsed([]),
        sleep_func=_sleep,
        clock_func=lambda: next(ticks, 10.0),
    )
    sources = [{"url": f"https://feed{i}.example/rss"} for i in range(6)]
    fetcher.fetch_many(sources, max_workers=2)
    assert sleeps == []
