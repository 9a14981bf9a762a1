from __future__ import annotations

import os
from pathlib import Path

try:
    from dotenv import load_dotenv
except Exception:  # pragma: no cover - optional dependency
    load_dotenv = None

if load_dotenv:
    _repo_root = Path(__file__).resolve().parents[3]
    load_dotenv(dotenv_path=_repo_root / ".env")


def _parse_csv_env(name: str) -> list[str]:
    """Split a comma separated environment variable into a list."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return raw in {"1", "true", "True", "yes", "YES"}


# ==========================================
# Feed sources
# ==========================================

RSS_SOURCES = [
    {"url": "https://feeds.feedburner.com/TheHackersNews"},
    {"url": "https://krebsonsecurity.com/feed/"},
    {"url": "https://www.bleepingcomputer.com/feed/"},
    {"url": "https://www.darkreading.com/rss.xml"},
    {"url": "https://www.securityweek.com/feed"},
    {"url": "https://www.infosecurity-magazine.com/rss/news/"},
    {"url": "https://cybersecuritynews.com/feed/"},
    {"url": "https://www.cyberscoop.com/feed/"},
    {"url": "https://www.helpnetsecurity.com/feed/"},
    {"url": "https://www.bankinfosecurity.com/rss.php"},
    {"url": "https://www.govinfosecurity.com/rss.php"},
    {"url": "https://blog.malwarebytes.com/feed/"},
    {"url": "https://www.welivesecurity.com/feed/"},
    {"url": "https://unit42.paloaltonetworks.com/feed/"},
    {"url": "https://blog.talosintelligence.com/feeds/posts/default"},
    {"url": "https://www.recordedfuture.com/feed"},
    {"url": "https://threatpost.com/feed/"},
    {"url": "https://www.scmagazine.com/feed"},
    {"url": "https://www.csoonline.com/index.rss", "name": "CSO Online"},
]

_feeds_env = _parse_csv_env("CYBERPULSE_FEEDS")
if _feeds_env:
    RSS_SOURCES = [{"url": url} for url in _feeds_env]

# ==========================================
# Newsletter branding
# ==========================================

NEWSLETTER_TITLE = os.getenv("NEWSLETTER_TITLE", "CYBERPULSE")
NEWSLETTER_SUBTITLE = os.getenv("NEWSLETTER_SUBTITLE", "PROTECTING WHAT MATTERS")
ORGANIZATION_NAME = os.getenv("ORGANIZATION_NAME", "ACME SECURITY")
ORGANIZATION_EMAIL = os.getenv("ORGANIZATION_EMAIL", "security@acmecorp.com")
ORGANIZATION_WEBSITE = os.getenv("ORGANIZATION_WEBSITE", "www.acmesecurity.com")

# ==========================================
# Paths
# ==========================================

REPO_ROOT = Path(__file__).resolve().parents[3]
DATA_DIR = Path(os.getenv("DATA_DIR", str(REPO_ROOT / "data")))

OUTPUT_JSON = os.getenv("OUTPUT_JSON", str(DATA_DIR / "newsletter-content.json"))
OUTPUT_HTML = os.getenv("OUTPUT_HTML", str(DATA_DIR / "newsletter.html"))
CACHE_PATH = os.getenv("CACHE_PATH", str(DATA_DIR / "threat_cache.json"))
CACHE_ENABLED = _env_bool("CACHE_ENABLED", True)
CACHE_MAX_THREATS = _env_int("CACHE_MAX_THREATS", 100)

# ==========================================
# Pipeline selection
# ==========================================

# TOP_K=50 reproduces the script-style "top 50 for further processing" cut.
TOP_K = _env_int("TOP_K", 4)
MIN_THREATS = _env_int("MIN_THREATS", 4)
RECENCY_WINDOW_DAYS = _env_int("RECENCY_WINDOW_DAYS", 7)

# ==========================================
# Link resolution
# ==========================================

LINK_PROBE_ENABLED = _env_bool("LINK_PROBE_ENABLED", False)
LINK_PROBE_TIMEOUT_SEC = _env_float("LINK_PROBE_TIMEOUT_SEC", 5.0)
LINK_PROBE_MIN_INTERVAL_SEC = _env_float("LINK_PROBE_MIN_INTERVAL_SEC", 1.0)

# ==========================================
# Summarization
# ==========================================

SUMMARY_API_URLS = _parse_csv_env("SUMMARY_API_URLS")
SUMMARY_API_TOKEN = os.getenv("SUMMARY_API_TOKEN", "").strip()
SUMMARY_TIMEOUT_SEC = _env_float("SUMMARY_TIMEOUT_SEC", 20.0)
SUMMARY_MAX_RETRIES = _env_int("SUMMARY_MAX_RETRIES", 1)
SUMMARY_RETRY_BACKOFF_SEC = _env_float("SUMMARY_RETRY_BACKOFF_SEC", 1.5)
SUMMARY_MAX_LENGTH = _env_int("SUMMARY_MAX_LENGTH", 200)
SUMMARY_MIN_CHARS = _env_int("SUMMARY_MIN_CHARS", 50)
SUMMARY_MAX_INPUT_CHARS = _env_int("SUMMARY_MAX_INPUT_CHARS", 1000)

# ==========================================
# Contextual content
# ==========================================

BEST_PRACTICE_COUNT = _env_int("BEST_PRACTICE_COUNT", 3)
TRAINING_COUNT = _env_int("TRAINING_COUNT", 2)

LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()
