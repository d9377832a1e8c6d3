"""Lead hotness from a job's published-date text."""

import re

from leadgen.core.schemas import HotnessLevel, JobRecord

HOT_MAX_DAYS = 3
WARM_MAX_DAYS = 14

# (pattern, days per unit); a pattern without a group means one unit.
_AGE_PATTERNS: list[tuple[re.Pattern[str], float]] = [
    (re.compile(r"^new$", re.IGNORECASE), 0.0),
    (re.compile(r"(\d+)\s*(?:hours?|minutes?)\s+ago", re.IGNORECASE), 0.0),
    (re.compile(r"^yesterday$", re.IGNORECASE), 1.0),
    (re.compile(r"(\d+)\s*days?\s+ago", re.IGNORECASE), 1.0),
    (re.compile(r"^last week$", re.IGNORECASE), 7.0),
    (re.compile(r"(\d+)\s*weeks?\s+ago", re.IGNORECASE), 7.0),
    (re.compile(r"^last month$", re.IGNORECASE), 30.0),
    (re.compile(r"(\d+)\s*months?\s+ago", re.IGNORECASE), 30.0),
    (re.compile(r"^last quarter$", re.IGNORECASE), 90.0),
    (re.compile(r"(\d+)\s*quarters?\s+ago", re.IGNORECASE), 90.0),
    (re.compile(r"^last year$", re.IGNORECASE), 365.0),
]


def _estimate_days_ago(published_date: str) -> float | None:
    """Parse published-date text into approximate days ago."""
    text = published_date.strip()
    for pattern, days_per_unit in _AGE_PATTERNS:
        match = pattern.search(text)
        if match:
            units = float(match.group(1)) if pattern.groups else 1.0
            return units * days_per_unit
    return None


def classify_hotness(published_date: str) -> HotnessLevel:
    days_ago = _estimate_days_ago(published_date)
    if days_ago is None:
        return ""
    if days_ago <= HOT_MAX_DAYS:
        return "hot"
    if days_ago <= WARM_MAX_DAYS:
        return "warm"
    return "cold"


def with_hotness(jobs: list[JobRecord]) -> list[JobRecord]:
    """Copies of jobs with hotness_level filled in."""
    return [
        job.model_copy(update={"hotness_level": classify_hotness(job.published_date)})
        for job in jobs
    ]


def hotness_stats(jobs: list[JobRecord]) -> dict[str, int]:
    stats = {"hot": 0, "warm": 0, "cold": 0}
    for job in jobs:
        if job.hotness_level:
            stats[job.hotness_level] += 1
    return stats
