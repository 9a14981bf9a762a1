from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Sequence

from cyberpulse.core.config import (
    CACHE_MAX_THREATS,
    LINK_PROBE_ENABLED,
    LINK_PROBE_MIN_INTERVAL_SEC,
    LINK_PROBE_TIMEOUT_SEC,
    MIN_THREATS,
    RECENCY_WINDOW_DAYS,
    SUMMARY_API_URLS,
    SUMMARY_MAX_LENGTH,
    SUMMARY_MIN_CHARS,
    TOP_K,
)
from cyberpulse.core.constants import (
    CANNED_THREATS,
    CREDIBLE_SOURCES,
    CRITICAL_KEYWORDS,
    HIGH_KEYWORDS,
    MEDIUM_KEYWORDS,
    RELEVANCE_KEYWORDS,
    SUMMARY_KEYWORDS,
)
from cyberpulse.models import PipelineRunStats, Threat
from cyberpulse.processing.dedupe import DedupeEngine
from cyberpulse.processing.links import LinkResolver, build_fallback_url, normalize_candidate
from cyberpulse.processing.recency import format_age, is_recent, to_utc_datetime, utc_now
from cyberpulse.processing.scoring import KeywordSet, ThreatScorer, extract_cves
from cyberpulse.processing.summarizer import ContentSummarizer, build_remote_summarizers
from cyberpulse.processing.types import Article, FeedSource, LogFunc
from cyberpulse.scrapers.feed_fetcher import FeedFetcher, FeedResult

_MIN_DT = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)


@dataclass(frozen=True)
class PipelineState:
    """Carry-over between runs: the last threat set and when the cache was last pruned."""

    threats: tuple[Threat, ...] = ()
    last_cleanup: datetime.datetime | None = None


@dataclass(frozen=True)
class PipelineResult:
    threats: list[Threat]
    stats: PipelineRunStats
    state: PipelineState = field(default_factory=PipelineState)


def threat_to_article(threat: Threat) -> Article:
    """Turn a cached threat back into a pipeline item so it competes with fresh articles."""
    link = threat.get("link") or ""
    return {
        "title": threat.get("title") or "",
        "description": threat.get("description") or "",
        "link": link,
        "linkCandidates": [link] if link else [],
        "feedUrl": "",
        "publishedAt": to_utc_datetime(threat.get("publishedAt")),
        "sourceName": threat.get("source") or "",
        "rawContent": threat.get("description") or "",
        "cached": True,
        "threatScore": int(threat.get("threatScore") or 0),
        "severity": threat.get("severity") or "LOW",
        "cveIds": list(threat.get("cveIds") or []),
        "linkKind": threat.get("linkKind") or "fallback",
    }


def dedupe_link(item: Article) -> str:
    """The link a fresh item resolves to, so it matches the stored link of its cached copy."""
    feed_url = item.get("feedUrl") or ""
    for candidate in item.get("linkCandidates") or []:
        url = normalize_candidate(candidate, feed_url)
        if url:
            return url
    title = item.get("title") or ""
    text = f"{title} {item.get('description') or ''} {item.get('rawContent') or ''}"
    return build_fallback_url(source=item.get("sourceName") or "", title=title, cve_ids=extract_cves(text))


def _iso(dt: datetime.datetime | None) -> str:
    return dt.isoformat() if dt is not None else ""


def _sort_key(item: Article) -> tuple[int, float, int]:
    published = item.get("publishedAt") or _MIN_DT
    return (-int(item.get("threatScore") or 0), -published.timestamp(), int(item.get("order") or 0))


class ThreatPipeline:
    def __init__(
        self,
        *,
        feed_fetcher: FeedFetcher,
        scorer: ThreatScorer,
        dedupe_engine: DedupeEngine,
        link_resolver: LinkResolver,
        summarizer: ContentSummarizer,
        logger: LogFunc,
        recency_window_days: int = 7,
        min_threats: int = 4,
        summary_max_length: int = 200,
        cache_max_threats: int = 100,
        canned_threats: Sequence[dict[str, Any]] = CANNED_THREATS,
    ) -> None:
        self._feed_fetcher = feed_fetcher
        self._scorer = scorer
        self._dedupe_engine = dedupe_engine
        self._link_resolver = link_resolver
        self._summarizer = summarizer
        self._log = logger
        self._recency_window_days = recency_window_days
        self._min_threats = max(0, min_threats)
        self._summary_max_length = summary_max_length
        self._cache_max_threats = max(0, cache_max_threats)
        self._canned_threats = tuple(canned_threats)

    def _score(self, items: list[Article], now: datetime.datetime) -> None:
        for item in items:
            if item.get("cached"):
                # cached snapshot keeps its score and severity
                continue
            title = item.get("title") or ""
            description = item.get("description") or ""
            score, severity = self._scorer.score_and_classify(
                title,
                description,
                source=item.get("sourceName") or "",
                published_at=item.get("publishedAt"),
                now=now,
            )
            item["threatScore"] = score
            item["severity"] = severity
            item["cveIds"] = extract_cves(f"{title} {description} {item.get('rawContent') or ''}")

    def _finalize(self, item: Article, now: datetime.datetime) -> Threat:
        published = item.get("publishedAt")
        if item.get("cached"):
            link = item.get("link") or ""
            link_kind = item.get("linkKind") or "fallback"
            description = item.get("description") or ""
            if not link:
                link, link_kind = self._link_resolver.resolve(
                    [],
                    source=item.get("sourceName") or "",
                    title=item.get("title") or "",
                    cve_ids=item.get("cveIds") or [],
                )
        else:
            link, link_kind = self._link_resolver.resolve(
                item.get("linkCandidates") or [],
                feed_url=item.get("feedUrl") or "",
                source=item.get("sourceName") or "",
                title=item.get("title") or "",
                cve_ids=item.get("cveIds") or [],
            )
            text = item.get("rawContent") or item.get("description") or item.get("title") or ""
            description = self._summarizer.summarize(text, self._summary_max_length)
        return {
            "id": "",
            "title": item.get("title") or "",
            "description": description,
            "severity": item.get("severity") or "LOW",  # type: ignore[typeddict-item]
            "source": item.get("sourceName") or "",
            "publishedAt": _iso(published),
            "formattedAge": format_age(published, now),
            "cveIds": list(item.get("cveIds") or []),
            "link": link,
            "linkKind": link_kind,  # type: ignore[typeddict-item]
            "threatScore": int(item.get("threatScore") or 0),
        }

    def canned_threats(self, now: datetime.datetime, *, exclude_titles: set[str] | None = None) -> list[Threat]:
        exclude = {t.lower() for t in (exclude_titles or set())}
        out: list[Threat] = []
        for canned in self._canned_threats:
            if canned["title"].lower() in exclude:
                continue
            published = now - datetime.timedelta(days=int(canned.get("ageDays") or 0))
            out.append(
                {
                    "id": "",
                    "title": canned["title"],
                    "description": canned["description"],
                    "severity": canned["severity"],
                    "source": canned["source"],
                    "publishedAt": _iso(published),
                    "formattedAge": format_age(published, now),
                    "cveIds": sorted(canned.get("cveIds") or []),
                    "link": canned["link"],
                    "linkKind": "direct",
                    "threatScore": int(canned.get("threatScore") or 0),
                }
            )
        return out

    def build_stats(
        self,
        threats: list[Threat],
        *,
        now: datetime.datetime,
        counts: dict[str, int],
    ) -> PipelineRunStats:
        severity = {"critical": 0, "high": 0, "medium": 0, "low": 0}
        links = {"direct": 0, "fallback": 0}
        cves: set[str] = set()
        for t in threats:
            key = (t.get("severity") or "LOW").lower()
            severity[key] = severity.get(key, 0) + 1
            links[t.get("linkKind") or "fallback"] = links.get(t.get("linkKind") or "fallback", 0) + 1
            cves.update(t.get("cveIds") or [])
        dates = [d for d in (to_utc_datetime(t.get("publishedAt")) for t in threats) if d is not None]
        avg = round(sum(int(t.get("threatScore") or 0) for t in threats) / len(threats)) if threats else 0
        return {
            "articlesScanned": counts.get("scanned", 0),
            "articlesRecent": counts.get("recent", 0),
            "articlesRelevant": counts.get("relevant", 0),
            "articlesUnique": counts.get("unique", 0),
            "threatsGenerated": len(threats),
            "feedsAttempted": counts.get("feedsAttempted", 0),
            "feedsSucceeded": counts.get("feedsSucceeded", 0),
            "sourcesUsed": len({t.get("source") for t in threats if t.get("source")}),
            "cveCount": len(cves),
            "avgThreatScore": int(avg),
            "severityBreakdown": severity,  # type: ignore[typeddict-item]
            "linkQuality": links,  # type: ignore[typeddict-item]
            "newestArticle": format_age(max(dates), now) if dates else None,
            "oldestArticle": format_age(min(dates), now) if dates else None,
            "timeRange": f"{self._recency_window_days} days",
        }

    def run(
        self,
        sources: Sequence[FeedSource],
        *,
        state: PipelineState | None = None,
        now: datetime.datetime | None = None,
        top_k: int = TOP_K,
    ) -> PipelineResult:
        now = to_utc_datetime(now) if now is not None else utc_now()
        state = state or PipelineState()
        self._log(f"Fetching {len(sources)} feeds")

        results: list[FeedResult] = self._feed_fetcher.fetch_many(sources) if sources else []
        succeeded = sum(1 for r in results if r.ok)
        fresh: list[Article] = [dict(a) for r in results for a in r.articles]  # type: ignore[misc]
        for item in fresh:
            item["link"] = dedupe_link(item)
        self._log(f"Feeds ok: {succeeded}/{len(sources)}, articles: {len(fresh)}")

        # cached snapshots go first so they win dedup collisions
        cached = [threat_to_article(t) for t in state.threats]
        merged = cached + fresh
        for idx, item in enumerate(merged):
            item["order"] = idx

        recent = [a for a in merged if is_recent(a.get("publishedAt"), now, self._recency_window_days)]
        evicted = len(cached) - sum(1 for a in recent if a.get("cached"))
        if evicted:
            self._log(f"Evicted {evicted} cached threats older than {self._recency_window_days} days")
        relevant = [
            a
            for a in recent
            if a.get("cached") or self._scorer.is_relevant(a.get("title") or "", a.get("description") or "")
        ]
        unique = self._dedupe_engine.deduplicate(relevant)
        self._log(f"Recent: {len(recent)}, relevant: {len(relevant)}, unique: {len(unique)}")

        self._score(unique, now)
        ranked = sorted(unique, key=_sort_key)
        live = [self._finalize(item, now) for item in ranked[: max(0, top_k)]]
        # the cache holds every recent threat up to cache_max_threats, not just the top_k
        carried = [self._finalize(item, now) for item in ranked[len(live) : self._cache_max_threats]]
        cache = (live + carried)[: self._cache_max_threats]

        threats = list(live)
        if len(threats) < self._min_threats:
            padding = self.canned_threats(now, exclude_titles={t["title"] for t in threats})
            needed = self._min_threats - len(threats)
            if padding[:needed]:
                self._log(f"Only {len(threats)} live threats, adding {len(padding[:needed])} fallback threats")
            threats.extend(padding[:needed])
        for idx, threat in enumerate(threats, start=1):
            threat["id"] = str(idx)

        counts = {
            "scanned": len(fresh),
            "recent": len(recent),
            "relevant": len(relevant),
            "unique": len(unique),
            "feedsAttempted": len(sources),
            "feedsSucceeded": succeeded,
        }
        stats = self.build_stats(threats, now=now, counts=counts)
        new_state = PipelineState(threats=tuple(dict(t) for t in cache), last_cleanup=now)  # type: ignore[misc]
        return PipelineResult(threats=threats, stats=stats, state=new_state)


def build_default_feed_fetcher() -> FeedFetcher:
    return FeedFetcher()


def build_default_scorer() -> ThreatScorer:
    return ThreatScorer(
        keyword_set=KeywordSet(
            critical=CRITICAL_KEYWORDS,
            high=HIGH_KEYWORDS,
            medium=MEDIUM_KEYWORDS,
        ),
        relevance_keywords=RELEVANCE_KEYWORDS,
        credible_sources=CREDIBLE_SOURCES,
    )


def build_default_link_resolver() -> LinkResolver:
    return LinkResolver(
        probe_enabled=LINK_PROBE_ENABLED,
        probe_timeout_sec=LINK_PROBE_TIMEOUT_SEC,
        min_probe_interval_sec=LINK_PROBE_MIN_INTERVAL_SEC,
    )


def build_default_summarizer() -> ContentSummarizer:
    return ContentSummarizer(
        remote_summarizers=build_remote_summarizers(SUMMARY_API_URLS),
        domain_keywords=SUMMARY_KEYWORDS,
        min_chars=SUMMARY_MIN_CHARS,
        default_max_length=SUMMARY_MAX_LENGTH,
    )


def build_default_pipeline(*, logger: LogFunc) -> ThreatPipeline:
    return ThreatPipeline(
        feed_fetcher=build_default_feed_fetcher(),
        scorer=build_default_scorer(),
        dedupe_engine=DedupeEngine(),
        link_resolver=build_default_link_resolver(),
        summarizer=build_default_summarizer(),
        logger=logger,
        recency_window_days=RECENCY_WINDOW_DAYS,
        min_threats=MIN_THREATS,
        summary_max_length=SUMMARY_MAX_LENGTH,
        cache_max_threats=CACHE_MAX_THREATS,
    )
