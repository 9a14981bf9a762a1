from __future__ import annotations

import datetime
import email.utils
import html
import re
from typing import Any

from bs4 import BeautifulSoup

_WS_RE = re.compile(r"\s+")  # collapse runs of whitespace
_BRACKETED_RE = re.compile(r"\[[^\]]*\]")  # "[...]", "[&#8230;]" read-more stubs from WordPress feeds
_CONTROL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")  # binary / control characters


def html_to_text(s: str) -> str:
    """Strip markup with BeautifulSoup and return the visible text."""
    if not s:
        return ""
    if "<" not in s:
        return s
    return BeautifulSoup(s, "html.parser").get_text(" ")


def clean_text(s: str) -> str:
    """Normalize feed text: unescape entities, drop tags and bracketed stubs, tidy whitespace."""
    if not s:
        return ""
    # 1) entities such as &amp; &#8217; to characters
    s = html.unescape(s)

    # 2) NBSP to a regular space
    s = s.replace("\u00a0", " ")

    # 3) markup that slipped into titles/descriptions
    s = html_to_text(s)

    # 4) bracketed fragments
    s = _BRACKETED_RE.sub("", s)

    # 5) whitespace
    s = _WS_RE.sub(" ", s).strip()
    return s


def clean_text_ws(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").strip())


def sanitize_text(text: str) -> str:
    """Remove control characters before text is sent to a remote model."""
    if not text:
        return ""
    text = _CONTROL_RE.sub(" ", text)
    if text.count("�") / max(1, len(text)) > 0.01:
        return ""
    return _WS_RE.sub(" ", text).strip()


def truncate_text(text: str, max_chars: int) -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip()


def parse_datetime_utc(value: Any) -> datetime.datetime | None:
    """Parse ISO-8601 or RFC-2822 input into an aware UTC datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        if not isinstance(value, str):
            return None
        raw = value.strip()
        if not raw:
            return None
        try:
            dt = datetime.datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except Exception:
            try:
                dt = email.utils.parsedate_to_datetime(raw)
            except Exception:
                return None
            if dt is None:
                return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.astimezone(datetime.timezone.utc)
