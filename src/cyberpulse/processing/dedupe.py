from __future__ import annotations

import re
from typing import Callable

from cyberpulse.processing.types import Item

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    t = (title or "").lower()
    t = _NON_WORD_RE.sub("", t)
    return _WS_RE.sub(" ", t).strip()


class DedupeEngine:
    """Exact-key deduplication over normalized title + link.

    Earlier items win, so callers control precedence through ordering
    (the pipeline puts cached threats ahead of freshly fetched ones).
    """

    def __init__(
        self,
        *,
        normalize_title_func: Callable[[str], str] = normalize_title,
    ) -> None:
        self._normalize_title = normalize_title_func

    def build_key(self, item: Item) -> str:
        title = self._normalize_title(item.get("title") or "")
        link = (item.get("link") or "").strip()
        return f"{title}_{link}"

    def deduplicate(self, items: list[Item]) -> list[Item]:
        seen: set[str] = set()
        kept: list[Item] = []
        for item in items:
            key = self.build_key(item)
            if key in seen:
                continue
            seen.add(key)
            kept.append(item)
        return kept
