from __future__ import annotations

import datetime
import logging
import sys

from cyberpulse.core.config import (
    CACHE_ENABLED,
    CACHE_PATH,
    LOG_LEVEL,
    NEWSLETTER_SUBTITLE,
    NEWSLETTER_TITLE,
    ORGANIZATION_EMAIL,
    ORGANIZATION_NAME,
    ORGANIZATION_WEBSITE,
    OUTPUT_HTML,
    OUTPUT_JSON,
    RECENCY_WINDOW_DAYS,
    RSS_SOURCES,
    TOP_K,
)
from cyberpulse.export.export_manager import (
    build_newsletter_payload,
    export_newsletter_json,
    load_state,
    save_state,
)
from cyberpulse.export.html_generator import generate_html, write_html
from cyberpulse.processing.pipeline import PipelineState, build_default_pipeline
from cyberpulse.processing.recency import utc_now


def _log(message: str) -> None:
    ts = datetime.datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}")


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        _log("Starting threat newsletter update")
        now = utc_now()
        state = load_state(CACHE_PATH, now=now, window_days=RECENCY_WINDOW_DAYS) if CACHE_ENABLED else PipelineState()
        if state.threats:
            _log(f"Loaded {len(state.threats)} cached threats")

        pipeline = build_default_pipeline(logger=_log)
        result = pipeline.run(RSS_SOURCES, state=state, now=now, top_k=TOP_K)
        if CACHE_ENABLED:
            save_state(CACHE_PATH, result.state)

        payload = build_newsletter_payload(result.threats, result.stats, now=now)
        payload = export_newsletter_json(payload, OUTPUT_JSON)
        _log(f"Wrote {len(payload['threats'])} threats to {OUTPUT_JSON}")

        config = {
            "newsletter_title": NEWSLETTER_TITLE,
            "newsletter_subtitle": NEWSLETTER_SUBTITLE,
            "organization_name": ORGANIZATION_NAME,
            "organization_email": ORGANIZATION_EMAIL,
            "organization_website": ORGANIZATION_WEBSITE,
        }
        if OUTPUT_HTML:
            write_html(generate_html(payload, config), OUTPUT_HTML)
            _log(f"Wrote {OUTPUT_HTML}")

        stats = result.stats
        _log(
            f"Done: threats={stats['threatsGenerated']} feeds={stats['feedsSucceeded']}/{stats['feedsAttempted']} "
            f"cves={stats['cveCount']} avgScore={stats['avgThreatScore']}"
        )
        return 0
    except Exception as e:
        logging.getLogger(__name__).exception("newsletter update failed")
        _log(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
