import datetime

from cyberpulse.export.html_generator import generate_html, write_html

CONFIG = {
    "newsletter_title": "CyberPulse",
    "newsletter_subtitle": "Weekly Threat Briefing",
    "organization_name": "Acme Security",
    "organization_email": "security@acme.example",
    "organization_website": "https://acme.example",
}


def _payload() -> dict:
    base = {
        "severity": "HIGH",
        "source": "Example News",
        "publishedAt": "2024-01-07T12:00:00+00:00",
        "formattedAge": "Yesterday",
        "threatScore": 30,
    }
    return {
        "threats": [
            dict(
                base,
                id="1",
                title="<script>alert(1)</script>",
                description="Bad & worse",
                cveIds=["CVE-2024-1111", "CVE-2024-2222"],
                link="https://news.example.com/1",
                linkKind="direct",
            ),
            dict(
                base,
                id="2",
                title="Searched story",
                description="Only a search link",
                cveIds=[],
                link="https://www.google.com/search?q=Searched+story",
                linkKind="fallback",
            ),
        ],
        "bestPractices": [{"id": "1", "content": "Enable MFA."}],
        "trainingItems": [{"id": "1", "content": "Phishing drill."}],
        "thoughtOfTheDay": "Security is a process.",
        "securityJoke": "Why did the packet cross the firewall?",
        "lastUpdated": datetime.datetime(2024, 1, 8, 12, 0, tzinfo=datetime.timezone.utc).isoformat(),
        "generationStats": {},
    }


def test_generate_html_escapes_feed_text() -> None:
    html = generate_html(_payload(), CONFIG)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert "Bad &amp; worse" in html


def test_generate_html_renders_sections() -> None:
    html = generate_html(_payload(), CONFIG)
    assert "CyberPulse" in html
    assert "CVE-2024-1111, CVE-2024-2222" in html
    assert "Enable MFA." in html
    assert "Phishing drill." in html
    assert "Why did the packet cross the firewall?" in html
    assert "2024-01-08 12:00 UTC" in html
    assert html.count("(search)") == 1


def test_write_html_creates_directories(tmp_path) -> None:
    out = tmp_path / "site" / "newsletter.html"
    write_html("<html></html>", str(out))
    assert out.read_text(encoding="utf-8") == "<html></html>"
