from __future__ import annotations

import datetime
from typing import Any, Callable, NotRequired, TypedDict


class FeedSource(TypedDict):
    url: str
    name: NotRequired[str]


class PipelineItem(TypedDict, total=False):
    title: str
    description: str
    link: str
    linkCandidates: list[str]
    feedUrl: str
    publishedAt: datetime.datetime | None
    sourceName: str
    rawContent: str
    cached: NotRequired[bool]
    order: NotRequired[int]
    threatScore: NotRequired[int]
    severity: NotRequired[str]
    cveIds: NotRequired[list[str]]
    linkKind: NotRequired[str]


Article = PipelineItem
Item = PipelineItem
LogFunc = Callable[[str], None]
ParseFunc = Callable[[Any], Any]
