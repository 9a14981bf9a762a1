from __future__ import annotations

import datetime
from typing import Any, Iterable

from cyberpulse.core.config import BEST_PRACTICE_COUNT, TRAINING_COUNT
from cyberpulse.core.constants import (
    BEST_PRACTICE_RULES,
    DEFAULT_BEST_PRACTICES,
    DEFAULT_TRAINING,
    JOKES,
    THOUGHTS,
    TRAINING_RULES,
)
from cyberpulse.models import BestPractice, TrainingItem
from cyberpulse.processing.recency import to_utc_datetime, utc_now

Rule = tuple[tuple[str, ...], str]

_EPOCH = datetime.date(1970, 1, 1)


def days_since_epoch(now: datetime.datetime | None = None) -> int:
    """Whole days between 1970-01-01 and the UTC calendar date of ``now``."""
    ref = to_utc_datetime(now) if now is not None else utc_now()
    if ref is None:
        ref = utc_now()
    return (ref.date() - _EPOCH).days


def weeks_since_epoch(now: datetime.datetime | None = None) -> int:
    return days_since_epoch(now) // 7


def threat_corpus(threats: Iterable[dict[str, Any]]) -> str:
    parts: list[str] = []
    for t in threats:
        parts.append(str(t.get("title") or ""))
        parts.append(str(t.get("description") or ""))
    return " ".join(parts).lower()


class ContextualContentGenerator:
    """Keyword-rule selection of recommendations plus day/week rotated copy."""

    def __init__(
        self,
        *,
        best_practice_rules: tuple[Rule, ...],
        default_best_practices: tuple[str, ...],
        training_rules: tuple[Rule, ...],
        default_training: tuple[str, ...],
        thoughts: tuple[str, ...],
        jokes: tuple[str, ...],
        best_practice_count: int = 3,
        training_count: int = 2,
    ) -> None:
        self._best_practice_rules = best_practice_rules
        self._default_best_practices = default_best_practices
        self._training_rules = training_rules
        self._default_training = default_training
        self._thoughts = thoughts
        self._jokes = jokes
        self._best_practice_count = max(0, best_practice_count)
        self._training_count = max(0, training_count)

    @staticmethod
    def _select(corpus: str, rules: tuple[Rule, ...], defaults: tuple[str, ...], limit: int) -> list[str]:
        picked: list[str] = []
        for keywords, text in rules:
            if any(kw in corpus for kw in keywords) and text not in picked:
                picked.append(text)
        for text in defaults:
            if text not in picked:
                picked.append(text)
        return picked[:limit]

    def best_practices(self, threats: list[dict[str, Any]]) -> list[BestPractice]:
        texts = self._select(
            threat_corpus(threats),
            self._best_practice_rules,
            self._default_best_practices,
            self._best_practice_count,
        )
        return [{"id": str(i), "content": t} for i, t in enumerate(texts, start=1)]

    def training_items(self, threats: list[dict[str, Any]]) -> list[TrainingItem]:
        texts = self._select(
            threat_corpus(threats),
            self._training_rules,
            self._default_training,
            self._training_count,
        )
        return [{"id": str(i), "content": t} for i, t in enumerate(texts, start=1)]

    def thought_of_the_day(self, now: datetime.datetime | None = None) -> str:
        if not self._thoughts:
            return ""
        return self._thoughts[days_since_epoch(now) % len(self._thoughts)]

    def security_joke(self, now: datetime.datetime | None = None) -> str:
        if not self._jokes:
            return ""
        return self._jokes[weeks_since_epoch(now) % len(self._jokes)]


def build_default_content_generator() -> ContextualContentGenerator:
    return ContextualContentGenerator(
        best_practice_rules=BEST_PRACTICE_RULES,
        default_best_practices=DEFAULT_BEST_PRACTICES,
        training_rules=TRAINING_RULES,
        default_training=DEFAULT_TRAINING,
        thoughts=THOUGHTS,
        jokes=JOKES,
        best_practice_count=BEST_PRACTICE_COUNT,
        training_count=TRAINING_COUNT,
    )
