import datetime

from cyberpulse.core.constants import CANNED_THREATS
from cyberpulse.processing.dedupe import DedupeEngine
from cyberpulse.processing.links import LinkResolver
from cyberpulse.processing.pipeline import (
    PipelineState,
    ThreatPipeline,
    build_default_scorer,
    threat_to_article,
)
from cyberpulse.processing.summarizer import ContentSummarizer
from cyberpulse.scrapers.feed_fetcher import FeedFetcher, FeedResult
from cyberpulse.scrapers.feed_fetcher_config import FeedFetcherConfig

NOW = datetime.datetime(2024, 1, 8, 12, 0, tzinfo=datetime.timezone.utc)
SOURCE = {"url": "https://news.example.com/feed"}


class _FakeFetcher:
    def __init__(self, articles: list[dict], ok: bool = True) -> None:
        self.articles = articles
        self.ok = ok
        self.calls = 0

    def fetch_many(self, sources: list[dict]) -> list[FeedResult]:
        self.calls += 1
        return [FeedResult(source=s, articles=list(self.articles) if i == 0 else [], ok=self.ok) for i, s in enumerate(sources)]


def _article(title: str, *, hours_ago: float = 2, link: str = "", description: str = "", **extra: object) -> dict:
    link = link or "https://news.example.com/" + title.lower().replace(" ", "-")
    item = {
        "title": title,
        "description": description,
        "link": link,
        "linkCandidates": [link],
        "feedUrl": SOURCE["url"],
        "publishedAt": NOW - datetime.timedelta(hours=hours_ago),
        "sourceName": "Example News",
        "rawContent": description,
    }
    item.update(extra)
    return item


def _pipeline(fetcher: object, logs: list[str] | None = None, **kwargs: object) -> ThreatPipeline:
    return ThreatPipeline(
        feed_fetcher=fetcher,  # type: ignore[arg-type]
        scorer=build_default_scorer(),
        dedupe_engine=DedupeEngine(),
        link_resolver=LinkResolver(),
        summarizer=ContentSummarizer(),
        logger=(logs.append if logs is not None else (lambda msg: None)),
        **kwargs,
    )


def test_all_feeds_failing_still_yields_canned_threats() -> None:
    result = _pipeline(_FakeFetcher([], ok=False)).run([SOURCE, SOURCE], now=NOW)
    assert len(result.threats) == 4
    assert [t["id"] for t in result.threats] == ["1", "2", "3", "4"]
    assert all(t["link"] for t in result.threats)
    assert [t["title"] for t in result.threats] == [c["title"] for c in CANNED_THREATS[:4]]
    assert result.stats["feedsSucceeded"] == 0
    assert result.stats["feedsAttempted"] == 2
    assert result.state.threats == ()


def test_real_fetcher_with_network_down_falls_back_to_canned() -> None:
    def _get(url: str, **kwargs: object) -> None:
        raise ConnectionError("offline")

    fetcher = FeedFetcher(FeedFetcherConfig(proxies=(), stagger_sec=0.0), get_func=_get)
    result = _pipeline(fetcher).run([SOURCE], now=NOW)
    assert len(result.threats) == 4
    assert result.stats["linkQuality"]["direct"] == 4


def test_filters_ranks_and_classifies() -> None:
    articles = [
        _article("Minor UI bug in WidgetCorp app", description="Cosmetic issue noted by the security team."),
        _article("Critical RCE in WidgetCorp VPN actively exploited"),
        _article("Celebrity gossip roundup", description="Nothing else."),
        _article("Old ransomware story", hours_ago=24 * 10),
    ]
    result = _pipeline(_FakeFetcher(articles), min_threats=0).run([SOURCE], now=NOW)
    assert [t["title"] for t in result.threats] == [
        "Critical RCE in WidgetCorp VPN actively exploited",
        "Minor UI bug in WidgetCorp app",
    ]
    assert [t["severity"] for t in result.threats] == ["CRITICAL", "LOW"]
    assert [t["threatScore"] for t in result.threats] == [40, 10]
    stats = result.stats
    assert (stats["articlesScanned"], stats["articlesRecent"], stats["articlesRelevant"]) == (4, 3, 2)
    assert stats["severityBreakdown"] == {"critical": 1, "high": 0, "medium": 0, "low": 1}


def test_equal_scores_prefer_newer_then_input_order() -> None:
    articles = [
        _article("Security advisory alpha", hours_ago=24 * 5),
        _article("Security advisory beta", hours_ago=24 * 4),
        _article("Security advisory gamma", hours_ago=24 * 4),
    ]
    result = _pipeline(_FakeFetcher(articles), min_threats=0).run([SOURCE], now=NOW)
    assert [t["title"] for t in result.threats] == [
        "Security advisory beta",
        "Security advisory gamma",
        "Security advisory alpha",
    ]


def test_top_k_limits_output_and_padding_fills_up() -> None:
    articles = [_article(f"Malware campaign {i}", hours_ago=i + 1) for i in range(6)]
    result = _pipeline(_FakeFetcher(articles)).run([SOURCE], now=NOW, top_k=2)
    assert len(result.threats) == 4
    assert [t["title"] for t in result.threats[:2]] == ["Malware campaign 0", "Malware campaign 1"]
    assert result.threats[2]["title"] == CANNED_THREATS[0]["title"]
    assert len(result.state.threats) == 6


def test_cached_threat_wins_over_fresh_duplicate() -> None:
    cached = {
        "id": "1",
        "title": "Big Breach at Retailer",
        "description": "cached desc",
        "severity": "HIGH",
        "source": "Example News",
        "publishedAt": (NOW - datetime.timedelta(days=1)).isoformat(),
        "formattedAge": "Yesterday",
        "cveIds": [],
        "link": "https://news.example.com/big-breach-at-retailer",
        "linkKind": "direct",
        "threatScore": 99,
    }
    fresh = _article("Big Breach at Retailer", description="A breach with stolen data at a retailer.")
    result = _pipeline(_FakeFetcher([fresh]), min_threats=0).run(
        [SOURCE], state=PipelineState(threats=(cached,)), now=NOW
    )
    assert len(result.threats) == 1
    assert result.threats[0]["description"] == "cached desc"
    assert result.threats[0]["threatScore"] == 99
    assert result.state.last_cleanup == NOW


def test_expired_cached_threats_are_evicted() -> None:
    stale = {
        "id": "1",
        "title": "Ancient breach",
        "description": "old",
        "severity": "HIGH",
        "source": "Example News",
        "publishedAt": (NOW - datetime.timedelta(days=8)).isoformat(),
        "formattedAge": "8 days ago",
        "cveIds": [],
        "link": "https://news.example.com/ancient",
        "linkKind": "direct",
        "threatScore": 50,
    }
    logs: list[str] = []
    result = _pipeline(_FakeFetcher([]), logs, min_threats=0).run(
        [SOURCE], state=PipelineState(threats=(stale,)), now=NOW
    )
    assert result.threats == []
    assert any(msg.startswith("Evicted 1 cached") for msg in logs)


def test_relative_link_resolves_direct_and_invalid_link_falls_back() -> None:
    articles = [
        _article("Exploit for router flaw", link="/advisory/1", feedUrl="https://vendor.example.com/feed"),
        _article(
            "Malware in browser extension",
            link="javascript:void(0)",
            sourceName="BleepingComputer",
        ),
    ]
    result = _pipeline(_FakeFetcher(articles), min_threats=0).run([SOURCE], now=NOW)
    by_title = {t["title"]: t for t in result.threats}
    router = by_title["Exploit for router flaw"]
    assert (router["link"], router["linkKind"]) == ("https://vendor.example.com/advisory/1", "direct")
    ext = by_title["Malware in browser extension"]
    assert ext["linkKind"] == "fallback"
    assert ext["link"].startswith("https://www.bleepingcomputer.com/search/?q=")
    assert result.stats["linkQuality"] == {"direct": 1, "fallback": 1}


def test_cves_are_collected_from_text() -> None:
    articles = [_article("Exploit for CVE-2024-1234", description="Also tracked as cve-2024-9999.")]
    result = _pipeline(_FakeFetcher(articles), min_threats=0).run([SOURCE], now=NOW)
    assert result.threats[0]["cveIds"] == ["CVE-2024-1234", "CVE-2024-9999"]
    assert result.stats["cveCount"] == 2


def test_threat_to_article_marks_cached() -> None:
    item = threat_to_article({"title": "T", "link": "https://x/1", "publishedAt": NOW.isoformat(), "threatScore": 7})
    assert item["cached"] is True
    assert item["linkCandidates"] == ["https://x/1"]
    assert item["publishedAt"] == NOW
    assert item["threatScore"] == 7


def test_no_sources_skips_fetching() -> None:
    fetcher = _FakeFetcher([])
    result = _pipeline(fetcher).run([], now=NOW)
    assert fetcher.calls == 0
    assert len(result.threats) == 4


def test_threats_below_the_cut_stay_cached() -> None:
    articles = [_article(f"Malware campaign {i}", hours_ago=i + 1) for i in range(6)]
    result = _pipeline(_FakeFetcher(articles), min_threats=0).run([SOURCE], now=NOW, top_k=4)
    assert len(result.threats) == 4
    cached_titles = [t["title"] for t in result.state.threats]
    assert "Malware campaign 4" in cached_titles
    assert "Malware campaign 5" in cached_titles

    capped = _pipeline(_FakeFetcher(articles), min_threats=0, cache_max_threats=3).run([SOURCE], now=NOW, top_k=2)
    assert [t["title"] for t in capped.state.threats] == [f"Malware campaign {i}" for i in range(3)]


def test_cached_threat_matches_fresh_copy_with_tracking_params() -> None:
    article = _article(
        "Big Breach at Retailer",
        link="https://news.example.com/big-breach?utm_source=rss&utm_medium=feed",
        description="A breach with stolen data at a retailer.",
    )
    pipeline = _pipeline(_FakeFetcher([article]), min_threats=0)
    first = pipeline.run([SOURCE], now=NOW)
    assert first.threats[0]["link"] == "https://news.example.com/big-breach"

    second = pipeline.run([SOURCE], state=first.state, now=NOW + datetime.timedelta(hours=1))
    assert [t["title"] for t in second.threats] == ["Big Breach at Retailer"]


def test_cached_threat_matches_fresh_copy_with_relative_link() -> None:
    article = _article(
        "Big Breach at Retailer",
        link="/big-breach",
        feedUrl="https://news.example.com/feed",
        description="A breach with stolen data at a retailer.",
    )
    pipeline = _pipeline(_FakeFetcher([article]), min_threats=0)
    first = pipeline.run([SOURCE], now=NOW)
    second = pipeline.run([SOURCE], state=first.state, now=NOW + datetime.timedelta(hours=1))
    assert [t["title"] for t in second.threats] == ["Big Breach at Retailer"]
    assert second.threats[0]["link"] == "https://news.example.com/big-breach"


def test_fresh_item_without_usable_link_matches_cached_fallback() -> None:
    article = _article("Malware in browser extension", link="javascript:void(0)", sourceName="BleepingComputer")
    pipeline = _pipeline(_FakeFetcher([article]), min_threats=0)
    first = pipeline.run([SOURCE], now=NOW)
    assert first.threats[0]["linkKind"] == "fallback"
    second = pipeline.run([SOURCE], state=first.state, now=NOW)
    assert len(second.threats) == 1
