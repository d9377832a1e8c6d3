"""Contact discovery: domain → ranked, filtered ContactResult."""

import logging
from typing import Any

from leadgen.core.schemas import ContactRecord, ContactResult
from leadgen.enrich.providers import ContactProvider
from leadgen.enrich.scoring import normalize_confidence, score_contact

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_LIMIT = 10
DEFAULT_MAX_CONTACTS = 8


def _is_undeliverable(record: dict[str, Any]) -> bool:
    verification = record.get("verification")
    if not isinstance(verification, dict):
        return False
    return (
        verification.get("result") == "undeliverable"
        or verification.get("status") == "invalid"
    )


def _verification_label(record: dict[str, Any]) -> object:
    verification = record.get("verification")
    if not isinstance(verification, dict):
        return None
    return verification.get("result") or verification.get("status")


def _text(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


class ContactDiscoverer:
    """Finds and ranks the people worth contacting at a domain."""

    def __init__(
        self,
        provider: ContactProvider,
        *,
        lookup_limit: int = DEFAULT_LOOKUP_LIMIT,
        max_contacts: int = DEFAULT_MAX_CONTACTS,
    ) -> None:
        self._provider = provider
        self._lookup_limit = lookup_limit
        self._max_contacts = max_contacts

    async def discover(self, domain: str, role_hint: str = "") -> ContactResult:
        """Look up contacts for domain, ranked by relevance to role_hint.

        Never raises: provider failures come back as an empty result with
        ``error`` set.
        """
        logger.info("Finding contacts for domain: %s", domain)
        try:
            raw_records = await self._provider.lookup_contacts(domain, self._lookup_limit)
        except Exception as e:
            logger.warning("Contact lookup failed for %s: %s", domain, e)
            return ContactResult(domain=domain, error=str(e) or type(e).__name__)

        contacts = self.rank(raw_records, role_hint)
        logger.info(
            "Domain %s: %d records from provider, %d kept",
            domain, len(raw_records), len(contacts),
        )
        return ContactResult(
            contacts=contacts,
            domain=domain,
            confidence="high" if contacts else "low",
            total_found=len(raw_records),
        )

    def rank(self, raw_records: list[dict[str, Any]], role_hint: str = "") -> list[ContactRecord]:
        """Filter undeliverable records, score the rest, keep the top ones.

        Sorting is stable, so equal scores keep provider order.
        """
        contacts: list[ContactRecord] = []
        for record in raw_records:
            email = _text(record.get("value"))
            if not email or _is_undeliverable(record):
                continue
            position = _text(record.get("position"))
            department = _text(record.get("department"))
            confidence = normalize_confidence(_verification_label(record))
            contacts.append(
                ContactRecord(
                    email=email,
                    first_name=_text(record.get("first_name")),
                    last_name=_text(record.get("last_name")),
                    position=position,
                    department=department,
                    confidence=confidence,
                    score=score_contact(position, department, confidence, role_hint),
                ),
            )
        contacts.sort(key=lambda c: c.score, reverse=True)
        return contacts[: self._max_contacts]
