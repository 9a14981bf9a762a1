from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any

from cyberpulse.core.config import MIN_THREATS
from cyberpulse.models import NewsletterPayload, PipelineRunStats, Threat
from cyberpulse.processing.content import ContextualContentGenerator, build_default_content_generator
from cyberpulse.processing.pipeline import PipelineState
from cyberpulse.processing.recency import format_age, is_recent, to_utc_datetime, utc_now

log = logging.getLogger(__name__)

_REQUIRED_THREAT_KEYS = {"id", "title", "description", "severity", "source", "link", "linkKind", "threatScore"}
_SEVERITIES = {"LOW", "MEDIUM", "HIGH", "CRITICAL"}


def _safe_read_json(path: str, default: Any) -> Any:
    """Load JSON, returning ``default`` when the file is missing or unreadable."""
    if not os.path.exists(path):
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except Exception:
        log.warning("could not read %s, using default", path)
        return default


def _atomic_write_json(path: str, payload: dict) -> None:
    """Write to a temp file next to ``path`` and swap it in."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    os.replace(tmp_path, path)


def _is_threat_dict(value: Any) -> bool:
    return isinstance(value, dict) and bool(value.get("title")) and bool(value.get("link"))


def load_state(
    path: str,
    *,
    now: datetime.datetime | None = None,
    window_days: int = 7,
) -> PipelineState:
    """Read the threat cache. Missing or corrupt files give an empty state; expired entries are dropped."""
    data = _safe_read_json(path, None)
    if not isinstance(data, dict):
        return PipelineState()
    articles = data.get("articles")
    if not isinstance(articles, list):
        return PipelineState()
    ref = to_utc_datetime(now) if now is not None else utc_now()
    threats = tuple(
        a for a in articles if _is_threat_dict(a) and is_recent(a.get("publishedAt"), ref, window_days)
    )
    return PipelineState(threats=threats, last_cleanup=to_utc_datetime(data.get("lastCleanup")))


def save_state(path: str, state: PipelineState) -> None:
    payload = {
        "articles": [dict(t) for t in state.threats],
        "lastCleanup": state.last_cleanup.isoformat() if state.last_cleanup else None,
    }
    _atomic_write_json(path, payload)


def refresh_formatted_ages(threats: list[Threat], now: datetime.datetime | None = None) -> list[Threat]:
    """Copies of ``threats`` with ``formattedAge`` recomputed against ``now``."""
    out: list[Threat] = []
    for t in threats:
        copy = dict(t)
        copy["formattedAge"] = format_age(t.get("publishedAt"), now)
        out.append(copy)  # type: ignore[arg-type]
    return out


def build_newsletter_payload(
    threats: list[Threat],
    stats: PipelineRunStats,
    *,
    now: datetime.datetime | None = None,
    content_generator: ContextualContentGenerator | None = None,
) -> NewsletterPayload:
    ref = to_utc_datetime(now) if now is not None else utc_now()
    generator = content_generator or build_default_content_generator()
    fresh = refresh_formatted_ages(threats, ref)
    return {
        "threats": fresh,
        "bestPractices": generator.best_practices(fresh),
        "trainingItems": generator.training_items(fresh),
        "thoughtOfTheDay": generator.thought_of_the_day(ref),
        "securityJoke": generator.security_joke(ref),
        "lastUpdated": ref.isoformat(),
        "generationStats": stats,
    }


def is_valid_payload(payload: Any, *, min_threats: int | None = None) -> bool:
    """Minimum shape check: enough threats, each with the fields the newsletter renders."""
    if min_threats is None:
        min_threats = MIN_THREATS
    if not isinstance(payload, dict):
        return False
    threats = payload.get("threats")
    if not isinstance(threats, list) or len(threats) < min_threats:
        return False
    for t in threats:
        if not isinstance(t, dict) or not _REQUIRED_THREAT_KEYS.issubset(t.keys()):
            return False
        if not t.get("title") or not t.get("link"):
            return False
        if t.get("severity") not in _SEVERITIES or t.get("linkKind") not in {"direct", "fallback"}:
            return False
    for key in ("bestPractices", "trainingItems"):
        if not isinstance(payload.get(key), list):
            return False
    return True


def load_existing_payload(path: str) -> NewsletterPayload | None:
    return _safe_read_json(path, None)


def export_newsletter_json(payload: NewsletterPayload, output_path: str) -> NewsletterPayload:
    """Write the payload, keeping the previous file when the new one is incomplete."""
    if not is_valid_payload(payload):
        existing = load_existing_payload(output_path)
        if existing and is_valid_payload(existing):
            log.warning("new payload is incomplete, keeping existing %s", output_path)
            return existing
        raise RuntimeError(f"newsletter payload invalid and no usable existing file at {output_path}")
    _atomic_write_json(output_path, payload)  # type: ignore[arg-type]
    return payload
