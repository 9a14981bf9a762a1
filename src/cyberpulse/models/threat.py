from __future__ import annotations

from typing import Literal, TypedDict

Severity = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
LinkKind = Literal["direct", "fallback"]


class Threat(TypedDict):
    id: str
    title: str
    description: str
    severity: Severity
    source: str
    publishedAt: str
    formattedAge: str
    cveIds: list[str]
    link: str
    linkKind: LinkKind
    threatScore: int


class BestPractice(TypedDict):
    id: str
    content: str


class TrainingItem(TypedDict):
    id: str
    content: str


class SeverityBreakdown(TypedDict):
    critical: int
    high: int
    medium: int
    low: int


class LinkQuality(TypedDict):
    direct: int
    fallback: int


class PipelineRunStats(TypedDict):
    articlesScanned: int
    articlesRecent: int
    articlesRelevant: int
    articlesUnique: int
    threatsGenerated: int
    feedsAttempted: int
    feedsSucceeded: int
    sourcesUsed: int
    cveCount: int
    avgThreatScore: int
    severityBreakdown: SeverityBreakdown
    linkQuality: LinkQuality
    newestArticle: str | None
    oldestArticle: str | None
    timeRange: str


class NewsletterPayload(TypedDict):
    threats: list[Threat]
    bestPractices: list[BestPractice]
    trainingItems: list[TrainingItem]
    thoughtOfTheDay: str
    securityJoke: str
    lastUpdated: str
    generationStats: PipelineRunStats
