"""Rule-based relevance scoring for discovered contacts.

Score = seniority tier + role-hint bonus + department bonus + verification bonus.
All matching is case-insensitive substring matching.
"""

from leadgen.core.schemas import ContactConfidence

# (keywords, points); first matching tier wins, highest first.
SENIORITY_TIERS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("ceo", "founder", "president"), 8),
    (("hr", "human resources", "recruitment", "talent"), 7),
    (("head", "director", "vp", "chief"), 6),
    (("manager", "lead"), 5),
)

# (role-hint keywords, position keywords, points)
ROLE_HINT_BONUSES: tuple[tuple[tuple[str, ...], tuple[str, ...], int], ...] = (
    (("design", "ux", "ui"), ("design", "ux", "ui", "creative"), 10),
    (("developer", "engineer"), ("tech", "engineering", "developer", "cto"), 8),
    (("marketing",), ("marketing", "brand", "communication"), 8),
)

DEPARTMENT_BONUSES: tuple[tuple[tuple[str, ...], int], ...] = (
    (("design", "creative", "product"), 3),
    (("hr", "people"), 2),
)

VERIFICATION_BONUS: dict[str, int] = {"high": 2, "medium": 1}

_CONFIDENCE_ALIASES: dict[str, ContactConfidence] = {
    "high": "high",
    "medium": "medium",
    "low": "low",
    "deliverable": "high",
    "valid": "high",
    "risky": "medium",
    "accept_all": "medium",
}


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(kw in text for kw in keywords)


def seniority_points(position: str) -> int:
    position = position.lower()
    for keywords, points in SENIORITY_TIERS:
        if _contains_any(position, keywords):
            return points
    return 0


def role_hint_points(position: str, role_hint: str) -> int:
    """Bonus of the first category whose hint and position keywords both match.

    At most one category applies per contact.
    """
    position = position.lower()
    hint = role_hint.lower()
    for hint_keywords, position_keywords, bonus in ROLE_HINT_BONUSES:
        if _contains_any(hint, hint_keywords) and _contains_any(position, position_keywords):
            return bonus
    return 0


def department_points(department: str) -> int:
    department = department.lower()
    return sum(
        points for keywords, points in DEPARTMENT_BONUSES if _contains_any(department, keywords)
    )


def score_contact(
    position: str,
    department: str,
    confidence: str,
    role_hint: str = "",
) -> int:
    """Relevance score of one contact for a role hint (e.g. the search term)."""
    return (
        seniority_points(position)
        + role_hint_points(position, role_hint)
        + department_points(department)
        + VERIFICATION_BONUS.get(confidence, 0)
    )


def normalize_confidence(raw: object) -> ContactConfidence:
    """Map a provider verification label onto high/medium/low/unknown."""
    if not isinstance(raw, str):
        return "unknown"
    return _CONFIDENCE_ALIASES.get(raw.strip().lower(), "unknown")
