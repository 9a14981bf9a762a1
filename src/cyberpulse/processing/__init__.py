"""Threat ingestion, ranking and content generation."""

__all__ = [
    "content",
    "dedupe",
    "links",
    "parsing",
    "pipeline",
    "recency",
    "scoring",
    "summarizer",
    "summary_client",
    "types",
]
