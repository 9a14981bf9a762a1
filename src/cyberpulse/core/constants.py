from __future__ import annotations

SOURCE_NAME_MAP = {  # feed hostname (www. stripped) -> display name
    "feeds.feedburner.com": "The Hacker News",
    "thehackernews.com": "The Hacker News",
    "krebsonsecurity.com": "Krebs on Security",
    "bleepingcomputer.com": "BleepingComputer",
    "darkreading.com": "Dark Reading",
    "securityweek.com": "Security Week",
    "infosecurity-magazine.com": "Infosecurity Magazine",
    "cybersecuritynews.com": "Cybersecurity News",
    "cyberscoop.com": "CyberScoop",
    "helpnetsecurity.com": "Help Net Security",
    "bankinfosecurity.com": "Bank Info Security",
    "govinfosecurity.com": "Gov Info Security",
    "blog.malwarebytes.com": "Malwarebytes",
    "malwarebytes.com": "Malwarebytes",
    "welivesecurity.com": "WeLiveSecurity",
    "unit42.paloaltonetworks.com": "Palo Alto Networks",
    "paloaltonetworks.com": "Palo Alto Networks",
    "blog.talosintelligence.com": "Talos Intelligence",
    "talosintelligence.com": "Talos Intelligence",
    "recordedfuture.com": "Recorded Future",
    "threatpost.com": "Threatpost",
    "scmagazine.com": "SC Magazine",
}
DEFAULT_SOURCE_NAME = "Security News"

# Shared by scoring and severity classification; see processing.scoring.KeywordSet.
CRITICAL_KEYWORDS = (
    "zero-day", "zero day", "actively exploited", "in the wild", "emergency patch",
    "critical vulnerability", "remote code execution", "privilege escalation",
    "unauthenticated", "wormable", "mass exploitation", "nation-state", "ransomware",
)
HIGH_KEYWORDS = (
    "vulnerability", "exploit", "breach", "attack", "malware", "backdoor", "trojan",
    "compromise", "infiltration", "data breach", "stolen data", "leaked data",
    "supply chain attack",
)
MEDIUM_KEYWORDS = (
    "phishing", "scam", "patch", "security flaw", "exposure", "misconfiguration",
    "warning", "advisory",
)

RELEVANCE_KEYWORDS = (  # topical gate, broader than the severity sets
    "cyber", "hack", "security", "threat", "vulnerab", "exploit", "breach", "attack",
    "malware", "ransomware", "phishing", "zero-day", "cve-", "backdoor", "trojan",
    "compromise", "infiltration", "data leak", "patch", "spyware", "botnet", "apt group",
)

CREDIBLE_SOURCES = (  # substring of the lowercased source name
    "hacker news", "krebs", "bleeping", "dark reading", "security week", "talos",
    "recorded future", "malwarebytes", "palo alto",
)

SUMMARY_KEYWORDS = (  # sentence weighting for the extractive summarizer
    "vulnerability", "exploit", "attack", "breach", "malware", "ransomware", "patch",
    "cve", "zero-day", "threat", "hacker", "critical", "compromise", "phishing",
    "attackers", "affected", "update",
)

TRACKING_PARAM_PREFIXES = (
    "utm_", "fbclid", "gclid", "_ga", "ref", "source", "medium", "campaign", "mc_",
)

PUBLISHER_SEARCH_TEMPLATES = (  # (source substring, template); first match wins
    ("microsoft", "https://msrc.microsoft.com/update-guide/en-US/security-updates"),
    ("cisa", "https://www.cisa.gov/news-events/cybersecurity-advisories"),
    ("github", "https://github.com/advisories?query={query}"),
    ("bleeping", "https://www.bleepingcomputer.com/search/?q={query}"),
    ("krebs", "https://krebsonsecurity.com/?s={query}"),
    ("dark reading", "https://www.darkreading.com/search?query={query}"),
    ("security week", "https://www.securityweek.com/search/?q={query}"),
    ("hacker news", "https://thehackernews.com/search?q={query}"),
    ("help net", "https://www.helpnetsecurity.com/?s={query}"),
    ("infosecurity", "https://www.infosecurity-magazine.com/search/?q={query}"),
)
CVE_SEARCH_TEMPLATE = "https://cve.mitre.org/cgi-bin/cvekey.cgi?keyword={query}"
GENERIC_SEARCH_TEMPLATE = "https://www.google.com/search?q={query}"
GENERIC_SEARCH_SUFFIX = "cybersecurity vulnerability"

CANNED_THREATS = (  # padding when too few live threats survive; ageDays is relative to the run
    {
        "title": "Critical Zero-Day Vulnerability in Enterprise Software Under Active Exploitation",
        "description": (
            "Security researchers have identified a critical zero-day vulnerability affecting multiple "
            "enterprise software platforms. The flaw allows remote code execution and active "
            "exploitation has been detected in the wild."
        ),
        "severity": "CRITICAL",
        "source": "CISA Security Advisory",
        "ageDays": 0,
        "link": "https://www.cisa.gov/news-events/cybersecurity-advisories",
        "threatScore": 95,
        "cveIds": ["CVE-2025-0001"],
    },
    {
        "title": "Advanced Ransomware Campaign Targets Healthcare Infrastructure with Novel Encryption",
        "description": (
            "Cybercriminals are exploiting healthcare systems through ransomware attacks using advanced "
            "encryption techniques, disrupting essential services and exposing patient data."
        ),
        "severity": "HIGH",
        "source": "Healthcare ISAC",
        "ageDays": 1,
        "link": "https://www.cisa.gov/news-events/alerts",
        "threatScore": 88,
        "cveIds": [],
    },
    {
        "title": "Supply Chain Attack Compromises Popular Development Tools and Libraries",
        "description": (
            "A supply chain attack compromised several widely used open-source packages, affecting "
            "thousands of applications and requiring immediate dependency updates."
        ),
        "severity": "HIGH",
        "source": "GitHub Security",
        "ageDays": 2,
        "link": "https://github.com/advisories",
        "threatScore": 82,
        "cveIds": [],
    },
    {
        "title": "AI-Powered Social Engineering Campaign Bypasses Traditional Security Controls",
        "description": (
            "Attackers are using AI-generated voice, video and email lures to impersonate executives "
            "and IT administrators, slipping past email filters and awareness training."
        ),
        "severity": "HIGH",
        "source": "Anti-Phishing Working Group",
        "ageDays": 3,
        "link": "https://www.darkreading.com/",
        "threatScore": 75,
        "cveIds": [],
    },
)

BEST_PRACTICE_RULES = (  # (keyword cluster, recommendation); evaluated in order
    (("ransomware", "encrypted files", "extortion"),
     "Keep offline, immutable backups and rehearse restores so ransomware cannot halt operations."),
    (("zero-day", "zero day", "actively exploited", "in the wild", "cve-"),
     "Patch internet-facing systems first: track known-exploited CVEs and apply emergency fixes within 48 hours."),
    (("phishing", "social engineering", "credential", "impersonat"),
     "Enforce phishing-resistant multi-factor authentication on email, VPN and administrator accounts."),
    (("supply chain", "npm", "pypi", "dependency", "open-source", "open source"),
     "Audit third-party code and pin dependencies; run SCA tooling to flag vulnerable packages."),
    (("vpn", "firewall", "router", "edge device", "gateway"),
     "Inventory edge devices and restrict their management interfaces to trusted networks."),
    (("breach", "leak", "exposed", "stolen data"),
     "Encrypt sensitive data at rest and review access logs for unusual bulk downloads."),
    (("cloud", "aws", "azure", "misconfiguration", "bucket"),
     "Continuously scan cloud configurations for public storage and over-privileged identities."),
    (("malware", "trojan", "backdoor", "infostealer", "botnet"),
     "Deploy endpoint detection and response (EDR) on every workstation and server."),
)
DEFAULT_BEST_PRACTICES = (
    "Implement multi-factor authentication across all critical systems and applications.",
    "Maintain regular security patches and updates for all software components.",
    "Establish network segmentation to limit lateral movement of threats.",
    "Monitor and log all network traffic and system activities.",
    "Implement zero-trust architecture principles.",
)

TRAINING_RULES = (
    (("phishing", "email", "impersonat"),
     "Phishing Simulation: run a mock campaign modelled on this month's lures and review who reported it."),
    (("ransomware", "extortion"),
     "Ransomware Tabletop: walk through detection, isolation and restore steps with IT and leadership."),
    (("supply chain", "dependency", "npm", "pypi", "open-source", "open source"),
     "Secure Coding Workshop: dependency hygiene, signed packages and software supply chain risk."),
    (("zero-day", "zero day", "cve-", "patch"),
     "Patch Management Drill: practice taking a critical CVE from advisory to deployed fix."),
    (("social engineering", "deepfake", "ai-generated", "ai-powered"),
     "Social Engineering Awareness: spot AI-generated voice, video and email impersonation."),
    (("breach", "credential", "password", "leak"),
     "Password Security: adopt a password manager and rotate credentials exposed in breaches."),
)
DEFAULT_TRAINING = (
    "Phishing recognition and reporting procedures for all staff members.",
    "Incident response simulation exercises and tabletop scenarios.",
    "Social engineering awareness and prevention techniques.",
    "Password security and credential management best practices.",
)

THOUGHTS = (  # rotated by UTC day since the epoch
    "IN CYBERSECURITY, PARANOIA IS A VIRTUE. THE QUESTION ISN'T \"IF\" BUT \"WHEN\" - SO BUILD WALLS TODAY THAT WITHSTAND TOMORROW'S SIEGE.",
    "SECURITY IS NOT A PRODUCT, BUT A PROCESS. IT'S NOT A DESTINATION, BUT A JOURNEY OF CONTINUOUS VIGILANCE.",
    "THE WEAKEST LINK IN SECURITY IS OFTEN THE HUMAN ELEMENT. INVEST IN PEOPLE AS MUCH AS TECHNOLOGY.",
    "ASSUME BREACH: PLAN FOR FAILURE, PREPARE FOR SUCCESS, AND ALWAYS HAVE A BACKUP PLAN.",
    "CYBERSECURITY IS EVERYONE'S RESPONSIBILITY, NOT JUST THE IT DEPARTMENT'S PROBLEM.",
    "THE BEST DEFENSE IS A GOOD OFFENSE: KNOW YOUR ENEMY BEFORE THEY KNOW YOU.",
    "IN THE DIGITAL AGE, YOUR DATA IS YOUR MOST VALUABLE ASSET. PROTECT IT LIKE YOUR LIFE DEPENDS ON IT.",
)

JOKES = (  # rotated by UTC week since the epoch
    "WHY DID THE CYBERSECURITY EXPERT BRING A LADDER TO WORK? TO CLIMB THE FIREWALL!",
    "HOW MANY CYBERSECURITY EXPERTS DOES IT TAKE TO CHANGE A LIGHT BULB? NONE - THEY JUST DECLARE IT A SECURITY FEATURE!",
    "WHY DON'T HACKERS EVER GET LOCKED OUT? THEY ALWAYS HAVE A BACKDOOR!",
    "WHAT DO YOU CALL A SECURITY GUARD AT A SAMSUNG STORE? A GUARDIAN OF THE GALAXY!",
    "WHY DID THE PASSWORD GO TO THERAPY? IT HAD TOO MANY COMPLEX ISSUES!",
    "WHAT'S A HACKER'S FAVORITE TYPE OF MUSIC? ALGO-RHYTHMS!",
    "WHY DON'T CYBERSECURITY EXPERTS TRUST STAIRS? THEY'RE ALWAYS UP TO SOMETHING!",
)


def normalize_source_name(name: str) -> str:
    """Lowercase and collapse whitespace so source lookups are stable."""
    return " ".join((name or "").lower().split())
