from __future__ import annotations

import calendar
import datetime
from typing import Any, Callable

from cyberpulse.processing.types import Article
from cyberpulse.utils import clean_text, parse_datetime_utc

_DATE_STRUCT_FIELDS = ("published_parsed", "updated_parsed", "created_parsed")
_DATE_STRING_FIELDS = ("published", "updated", "created", "pubDate", "date")


def _field(entry: Any, name: str) -> Any:
    # feedparser entries allow both attribute and key access; test fakes may only have one
    value = getattr(entry, name, None)
    if value is None and isinstance(entry, dict):
        value = entry.get(name)
    return value


class EntryParser:
    def __init__(
        self,
        *,
        clean_text_func: Callable[[str], str] = clean_text,
        max_raw_chars: int = 2000,
    ) -> None:
        self._clean_text = clean_text_func
        self._max_raw_chars = max_raw_chars

    def link_candidates(self, entry: Any) -> list[str]:
        """Ordered, de-duplicated link candidates: link, guid/id, origlink, alternates."""
        raw: list[Any] = [
            _field(entry, "link"),
            _field(entry, "guid"),
            _field(entry, "id"),
            _field(entry, "feedburner_origlink"),
        ]
        for link in _field(entry, "links") or []:
            href = link.get("href") if isinstance(link, dict) else getattr(link, "href", None)
            raw.append(href)
        out: list[str] = []
        for value in raw:
            if not isinstance(value, str):
                continue
            value = value.strip()
            if value and value not in out:
                out.append(value)
        return out

    def _content_values(self, entry: Any) -> list[str]:
        parts: list[str] = []
        for content in _field(entry, "content") or []:
            if isinstance(content, dict):
                value = content.get("value", "") or ""
            else:
                value = getattr(content, "value", "") or ""
            if value:
                parts.append(value)
        return parts

    def extract_description(self, entry: Any) -> str:
        for name in ("summary", "description"):
            value = _field(entry, name)
            if isinstance(value, str) and value.strip():
                return self._clean_text(value)
        parts = self._content_values(entry)
        if parts:
            return self._clean_text(parts[0])
        return ""

    def extract_raw_content(self, entry: Any, description: str) -> str:
        parts = self._content_values(entry)
        text = self._clean_text(" ".join(parts)) if parts else description
        return text[: self._max_raw_chars]

    def extract_published(self, entry: Any) -> datetime.datetime | None:
        for name in _DATE_STRUCT_FIELDS:
            parsed = _field(entry, name)
            if parsed:
                try:
                    # feedparser normalizes *_parsed to UTC struct_time
                    return datetime.datetime.fromtimestamp(calendar.timegm(parsed), tz=datetime.timezone.utc)
                except Exception:
                    continue
        for name in _DATE_STRING_FIELDS:
            dt = parse_datetime_utc(_field(entry, name))
            if dt is not None:
                return dt
        return None

    def parse_entry(self, entry: Any, *, feed_url: str, source_name: str) -> Article | None:
        """Normalize one feed entry, or None when it has no title or no link candidate."""
        title_raw = _field(entry, "title")
        title = self._clean_text(title_raw) if isinstance(title_raw, str) else ""
        if not title:
            return None
        candidates = self.link_candidates(entry)
        if not candidates:
            return None
        description = self.extract_description(entry)
        return {
            "title": title,
            "description": description,
            "link": candidates[0],
            "linkCandidates": candidates,
            "feedUrl": feed_url,
            "publishedAt": self.extract_published(entry),
            "sourceName": source_name,
            "rawContent": self.extract_raw_content(entry, description),
        }
