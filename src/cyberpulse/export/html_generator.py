from __future__ import annotations

import logging
import os
from typing import Any

from jinja2 import Template

from cyberpulse.models import NewsletterPayload
from cyberpulse.processing.recency import to_utc_datetime, utc_now

log = logging.getLogger(__name__)

_SEVERITY_COLORS = {
    "CRITICAL": "#b91c1c",
    "HIGH": "#c2410c",
    "MEDIUM": "#a16207",
    "LOW": "#15803d",
}

_HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <title>{{ title }} | {{ organization }}</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Helvetica Neue", Arial, sans-serif;
            background-color: #0f172a;
            padding: 20px;
        }
        .container {
            max-width: 800px;
            margin: 0 auto;
            background: #ffffff;
            padding: 28px;
            border-radius: 12px;
        }
        .cover {
            text-align: center;
            border-bottom: 3px solid #0f172a;
            padding-bottom: 16px;
            margin-bottom: 24px;
        }
        .cover h1 {
            letter-spacing: 4px;
            margin: 0;
            color: #0f172a;
        }
        .subtitle {
            color: #475569;
            font-size: 13px;
            letter-spacing: 2px;
        }
        .org {
            color: #94a3b8;
            font-size: 12px;
            margin-top: 8px;
        }
        .section-title {
            font-weight: 700;
            font-size: 16px;
            margin: 24px 0 12px;
            color: #0f172a;
        }
        .threat {
            border-left: 4px solid #cbd5e1;
            padding: 10px 14px;
            margin-bottom: 16px;
            background: #f8fafc;
        }
        .badge {
            display: inline-block;
            color: #ffffff;
            font-size: 11px;
            font-weight: 700;
            padding: 2px 8px;
            border-radius: 4px;
        }
        .meta {
            color: #64748b;
            font-size: 12px;
            margin: 4px 0;
        }
        .threat-title {
            font-weight: 700;
            color: #1e293b;
            text-decoration: none;
        }
        .threat-title:hover {
            text-decoration: underline;
        }
        .cves {
            font-family: monospace;
            font-size: 12px;
            color: #334155;
        }
        .quote {
            font-style: italic;
            color: #334155;
            text-align: center;
            margin: 20px 0;
        }
        .footer {
            text-align: center;
            font-size: 11px;
            color: #94a3b8;
            margin-top: 24px;
        }
    </style>
</head>
<body>
    <div class="container">
        <div class="cover">
            <h1>{{ title }}</h1>
            <div class="subtitle">{{ subtitle }}</div>
            <div class="org">{{ organization }} &middot; {{ year }}</div>
        </div>

        <div class="section-title">Latest Threats</div>
        {% for threat in threats %}
        <div class="threat" style="border-left-color: {{ severity_colors.get(threat.severity, '#cbd5e1') }};">
            <span class="badge" style="background: {{ severity_colors.get(threat.severity, '#64748b') }};">{{ threat.severity }}</span>
            <a href="{{ threat.link }}" target="_blank" rel="noopener noreferrer" class="threat-title">{{ threat.title }}</a>
            {% if threat.linkKind == "fallback" %}<span class="meta">(search)</span>{% endif %}
            <div class="meta">{{ threat.source }} &middot; {{ threat.formattedAge }} &middot; score {{ threat.threatScore }}</div>
            {% if threat.cveIds %}
            <div class="cves">{{ threat.cveIds | join(", ") }}</div>
            {% endif %}
            <p>{{ threat.description }}</p>
        </div>
        {% endfor %}

        <div class="section-title">Best Practices</div>
        <ol>
            {% for item in best_practices %}
            <li>{{ item.content }}</li>
            {% endfor %}
        </ol>

        <div class="section-title">Training &amp; Awareness</div>
        <ul>
            {% for item in training_items %}
            <li>{{ item.content }}</li>
            {% endfor %}
        </ul>

        <div class="section-title">Thought of the Day</div>
        <div class="quote">{{ thought }}</div>

        <div class="section-title">Security Humor</div>
        <div class="quote">{{ joke }}</div>

        <div class="footer">
            {{ organization }} &middot; {{ email }} &middot; {{ website }}<br />
            Last updated {{ last_updated }}
        </div>
    </div>
</body>
</html>
"""


def generate_html(payload: NewsletterPayload, config: dict[str, Any]) -> str:
    """Render the newsletter payload as a standalone HTML page."""
    log.info("rendering HTML newsletter")
    template = Template(_HTML_TEMPLATE, autoescape=True)
    updated = to_utc_datetime(payload.get("lastUpdated")) or utc_now()
    return template.render(
        title=config["newsletter_title"],
        subtitle=config.get("newsletter_subtitle", ""),
        organization=config.get("organization_name", ""),
        email=config.get("organization_email", ""),
        website=config.get("organization_website", ""),
        year=updated.year,
        last_updated=updated.strftime("%Y-%m-%d %H:%M UTC"),
        threats=payload.get("threats") or [],
        best_practices=payload.get("bestPractices") or [],
        training_items=payload.get("trainingItems") or [],
        thought=payload.get("thoughtOfTheDay") or "",
        joke=payload.get("securityJoke") or "",
        severity_colors=_SEVERITY_COLORS,
    )


def write_html(html: str, output_path: str) -> None:
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html)
