from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from cyberpulse.core.config import (
    SUMMARY_API_TOKEN,
    SUMMARY_MAX_INPUT_CHARS,
    SUMMARY_MAX_RETRIES,
    SUMMARY_RETRY_BACKOFF_SEC,
    SUMMARY_TIMEOUT_SEC,
)
from cyberpulse.utils import sanitize_text, truncate_text

log = logging.getLogger(__name__)

_SUMMARY_UNAVAILABLE_LOGGED: set[str] = set()
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def log_summary_unavailable(reason: str) -> None:
    # one warning per distinct reason per process
    if reason in _SUMMARY_UNAVAILABLE_LOGGED:
        return
    log.warning("remote summarizer unavailable: %s", reason)
    _SUMMARY_UNAVAILABLE_LOGGED.add(reason)


def extract_summary_text(payload: Any) -> str:
    """Pull ``summary_text`` / ``generated_text`` from a dict or list-of-dicts response."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    if not isinstance(payload, dict):
        return ""
    for key in ("summary_text", "generated_text"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def request_remote_summary(
    url: str,
    text: str,
    max_length: int,
    *,
    token: str = SUMMARY_API_TOKEN,
    timeout: float = SUMMARY_TIMEOUT_SEC,
    max_retries: int = SUMMARY_MAX_RETRIES,
    backoff_sec: float = SUMMARY_RETRY_BACKOFF_SEC,
    max_input_chars: int = SUMMARY_MAX_INPUT_CHARS,
    post_func: Callable[..., Any] = requests.post,
    sleep_func: Callable[[float], None] = time.sleep,
) -> str:
    """POST ``{inputs, parameters}`` to a summarization endpoint. Returns "" on any failure."""
    cleaned = truncate_text(sanitize_text(text), max_input_chars)
    if not cleaned:
        return ""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    request_payload = {
        "inputs": cleaned,
        "parameters": {
            "max_length": max_length,
            "min_length": min(50, max_length),
            "do_sample": False,
        },
    }
    max_attempts = max(1, max_retries + 1)
    last_err = ""
    for attempt in range(1, max_attempts + 1):
        try:
            resp = post_func(url, headers=headers, json=request_payload, timeout=timeout)
        except Exception as e:
            last_err = f"{type(e).__name__}: {e}"
            if attempt < max_attempts:
                sleep_func(backoff_sec * (2 ** (attempt - 1)))
                continue
            break

        if not resp.ok:
            last_err = f"{resp.status_code} from {url}"
            if resp.status_code in _RETRYABLE_STATUS and attempt < max_attempts:
                sleep_func(backoff_sec * (2 ** (attempt - 1)))
                continue
            break

        try:
            data = resp.json()
        except Exception:
            last_err = f"non-JSON response from {url}"
            break

        summary = extract_summary_text(data)
        if summary:
            return summary
        last_err = f"empty summary from {url}"
        break

    if last_err:
        log_summary_unavailable(last_err)
    return ""
