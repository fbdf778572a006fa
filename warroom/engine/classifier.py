"""Severity classifier — keyword tiers over the incident title."""

# Ranked highest first; the first tier with any keyword in the title wins.
CRITICAL_KEYWORDS = ("down", "outage", "data loss", "security breach", "production down", "p0")
HIGH_KEYWORDS = ("degraded", "timeout", "memory leak", "cpu", "error rate", "payment", "exhausted")
MEDIUM_KEYWORDS = ("slow", "intermittent", "warning", "certificate", "disk", "latency")

KEYWORD_TIERS = (
    ("critical", CRITICAL_KEYWORDS),
    ("high", HIGH_KEYWORDS),
    ("medium", MEDIUM_KEYWORDS),
)

# Used only when no keyword matches
SOURCE_DEFAULTS = {
    "monitoring": "medium",
    "external": "high",
}
FALLBACK_SEVERITY = "low"


def classify_severity(title: str, source: str) -> str:
    """Map an incident title and source to a severity tier.

    Matching is a case-insensitive substring test, so "Shutdown" counts as
    "down". Never raises; unknown sources fall through to ``low``.
    """
    lowered = (title or "").lower()
    for severity, keywords in KEYWORD_TIERS:
        if any(keyword in lowered for keyword in keywords):
            return severity
    return SOURCE_DEFAULTS.get(source, FALLBACK_SEVERITY)
