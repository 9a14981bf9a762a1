from __future__ import annotations

import logging
import re
from typing import Callable, Iterable

from cyberpulse.core.constants import SUMMARY_KEYWORDS
from cyberpulse.processing.summary_client import request_remote_summary
from cyberpulse.utils import clean_text_ws, truncate_text

log = logging.getLogger(__name__)

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_ELLIPSIS = "..."

RemoteSummarizer = Callable[[str, int], str]


class SummaryUnavailable(Exception):
    """A remote summarizer returned nothing usable."""


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(clean_text_ws(text)) if s.strip()]


def build_remote_summarizers(
    urls: Iterable[str],
    *,
    request_func: Callable[..., str] = request_remote_summary,
) -> tuple[RemoteSummarizer, ...]:
    def _make(url: str) -> RemoteSummarizer:
        def _call(text: str, max_length: int) -> str:
            summary = request_func(url, text, max_length)
            if not summary:
                raise SummaryUnavailable(url)
            return summary

        return _call

    return tuple(_make(u) for u in urls if u)


class ContentSummarizer:
    def __init__(
        self,
        *,
        remote_summarizers: tuple[RemoteSummarizer, ...] = (),
        domain_keywords: tuple[str, ...] = SUMMARY_KEYWORDS,
        min_chars: int = 50,
        default_max_length: int = 200,
        short_sentence_len: int = 100,
        short_sentence_bonus: int = 2,
    ) -> None:
        self._remote_summarizers = remote_summarizers
        self._domain_keywords = tuple(k.lower() for k in domain_keywords)
        self._min_chars = min_chars
        self._default_max_length = default_max_length
        self._short_sentence_len = short_sentence_len
        self._short_sentence_bonus = short_sentence_bonus

    def _sentence_score(self, sentence: str) -> int:
        lower = sentence.lower()
        score = sum(1 for kw in self._domain_keywords if kw in lower)
        if len(sentence) < self._short_sentence_len:
            score += self._short_sentence_bonus
        return score

    def extractive_summary(self, text: str, max_length: int) -> str:
        sentences = split_sentences(text)
        # sorted() is stable, so equal scores keep document order
        ranked = sorted(sentences, key=self._sentence_score, reverse=True)
        budget = max(0, max_length - len(_ELLIPSIS))
        picked: list[str] = []
        total = 0
        for sentence in ranked:
            extra = len(sentence) + (1 if picked else 0)
            if total + extra > budget:
                break
            picked.append(sentence)
            total += extra
        if not picked:
            return clean_text_ws(text)[:budget].rstrip() + _ELLIPSIS
        return " ".join(picked) + _ELLIPSIS

    def summarize(self, text: str, max_length: int | None = None) -> str:
        limit = max_length or self._default_max_length
        stripped = clean_text_ws(text)
        if not stripped:
            return ""
        if len(stripped) < self._min_chars:
            return stripped + _ELLIPSIS
        for remote in self._remote_summarizers:
            try:
                summary = remote(stripped, limit)
            except SummaryUnavailable:
                continue
            except Exception:
                log.exception("remote summarizer failed")
                continue
            summary = clean_text_ws(summary or "")
            if summary:
                return self._bounded(summary, limit)
        return self.extractive_summary(stripped, limit)

    @staticmethod
    def _bounded(summary: str, limit: int) -> str:
        # remote max_length counts tokens, the newsletter budget counts characters
        if len(summary) <= limit:
            return summary
        return truncate_text(summary, max(0, limit - len(_ELLIPSIS))) + _ELLIPSIS
