"""Typed models for newsletter payloads and threats."""

from .threat import (
    BestPractice,
    LinkKind,
    NewsletterPayload,
    PipelineRunStats,
    Severity,
    Threat,
    TrainingItem,
)

__all__ = [
    "BestPractice",
    "LinkKind",
    "NewsletterPayload",
    "PipelineRunStats",
    "Severity",
    "Threat",
    "TrainingItem",
]
