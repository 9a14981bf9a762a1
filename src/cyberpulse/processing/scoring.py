from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Any

from cyberpulse.core.constants import normalize_source_name
from cyberpulse.processing.recency import age_hours

CVE_RE = re.compile(r"CVE-\d{4}-\d{4,7}", re.IGNORECASE)


@dataclass(frozen=True)
class KeywordSet:
    """One keyword table shared by scoring and severity classification."""

    critical: tuple[str, ...]
    high: tuple[str, ...]
    medium: tuple[str, ...]


@dataclass(frozen=True)
class ScoreWeights:
    cve: int = 15
    critical: int = 20
    high: int = 10
    medium: int = 5
    credible_source: int = 8
    # (max age in hours, bonus); first matching bucket wins
    recency: tuple[tuple[int, int], ...] = ((24, 10), (48, 7), (72, 5))


def extract_cves(text: str) -> list[str]:
    """Sorted, de-duplicated, upper-cased CVE ids."""
    return sorted({m.upper() for m in CVE_RE.findall(text or "")})


class ThreatScorer:
    def __init__(
        self,
        *,
        keyword_set: KeywordSet,
        relevance_keywords: tuple[str, ...],
        credible_sources: tuple[str, ...],
        weights: ScoreWeights | None = None,
    ) -> None:
        self._keywords = KeywordSet(
            critical=tuple(k.lower() for k in keyword_set.critical),
            high=tuple(k.lower() for k in keyword_set.high),
            medium=tuple(k.lower() for k in keyword_set.medium),
        )
        self._relevance_keywords = tuple(k.lower() for k in relevance_keywords)
        self._credible_sources = tuple(s.lower() for s in credible_sources)
        self._weights = weights or ScoreWeights()

    @staticmethod
    def _text(title: str, description: str) -> str:
        return f"{title or ''} {description or ''}".lower()

    def _hits(self, text: str, keywords: tuple[str, ...]) -> int:
        return sum(1 for kw in keywords if kw in text)

    def is_relevant(self, title: str, description: str) -> bool:
        text = self._text(title, description)
        return any(kw in text for kw in self._relevance_keywords)

    def recency_bonus(self, published_at: Any, now: datetime.datetime | None) -> int:
        hours = age_hours(published_at, now)
        if hours is None or hours < 0:
            return 0
        for max_hours, bonus in self._weights.recency:
            if hours < max_hours:
                return bonus
        return 0

    def source_bonus(self, source: str) -> int:
        s = normalize_source_name(source)
        if not s:
            return 0
        return self._weights.credible_source * sum(1 for c in self._credible_sources if c in s)

    def score(
        self,
        title: str,
        description: str,
        *,
        source: str = "",
        published_at: Any = None,
        now: datetime.datetime | None = None,
    ) -> int:
        w = self._weights
        text = self._text(title, description)
        total = len(CVE_RE.findall(text)) * w.cve
        total += self._hits(text, self._keywords.critical) * w.critical
        total += self._hits(text, self._keywords.high) * w.high
        total += self._hits(text, self._keywords.medium) * w.medium
        total += self.recency_bonus(published_at, now)
        total += self.source_bonus(source)
        return max(0, int(total))

    def classify(self, score: int, title: str, description: str) -> str:
        text = self._text(title, description)
        if score > 50 or self._hits(text, self._keywords.critical):
            return "CRITICAL"
        if score > 30 or self._hits(text, self._keywords.high):
            return "HIGH"
        if score > 15 or self._hits(text, self._keywords.medium):
            return "MEDIUM"
        return "LOW"

    def score_and_classify(
        self,
        title: str,
        description: str,
        *,
        source: str = "",
        published_at: Any = None,
        now: datetime.datetime | None = None,
    ) -> tuple[int, str]:
        value = self.score(title, description, source=source, published_at=published_at, now=now)
        return value, self.classify(value, title, description)
