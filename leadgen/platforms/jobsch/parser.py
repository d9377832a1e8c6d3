"""jobs.ch listings parser — converts a rendered page into JobRecord objects.

The listing cards render their labelled fields as one run of text, e.g.::

    NewSenior UX DesignerPlace of work:ZürichWorkload:80 – 100%
    Contract type:Unlimited employmentAcme AGEasy apply

Design rules:
  - Extraction is pure: same RawPage in, same records out.
  - Each field has its own extractor over the same normalized text; a field
    that does not match is "" and never sinks the record.
  - A container is only rejected when its title is missing or too long.
  - One record per detail-page URL per page.
"""

import logging
import re
from collections.abc import Callable
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup, Tag

from leadgen.core.schemas import (
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    JobRecord,
    RawPage,
)
from leadgen.platforms.jobsch.selectors import (
    CONTRACT_TYPE_LABEL,
    DETAIL_LINK_PATTERN,
    DETAIL_LINK_SELECTORS,
    PLACE_OF_WORK_LABEL,
    QUICK_APPLY_MARKER,
    RECOMMENDED_MARKER,
    WORKLOAD_LABEL,
)

logger = logging.getLogger(__name__)

CONTAINER_MIN_CHARS = 50
CONTAINER_MAX_CHARS = 1000
ANCESTOR_MIN_CHARS = 100
DEFAULT_MIN_CANDIDATES = 5

_UPPER = "A-ZÀ-ÖØ-Þ"

_RELATIVE_TIME = (
    r"(?:Last week|Last month|Last quarter|Last year|Yesterday"
    r"|\d+\s+(?:days?|weeks?|months?|quarters?)\s+ago|New)"
)

_STOP = "|".join(
    re.escape(label)
    for label in (
        PLACE_OF_WORK_LABEL,
        WORKLOAD_LABEL,
        CONTRACT_TYPE_LABEL,
        QUICK_APPLY_MARKER,
        RECOMMENDED_MARKER,
    )
)

_PUBLISHED_RE = re.compile(rf"^({_RELATIVE_TIME})")
_LOCATION_RE = re.compile(rf"{re.escape(PLACE_OF_WORK_LABEL)}\s*(?!{_STOP})(.+?)\s*(?={_STOP}|$)")
_WORKLOAD_RE = re.compile(rf"{re.escape(WORKLOAD_LABEL)}\s*(?!{_STOP})(.+?)\s*(?={_STOP}|$)")
_CONTRACT_RE = re.compile(
    rf"{re.escape(CONTRACT_TYPE_LABEL)}\s*(?!{_STOP})([{_UPPER}]?[^{_UPPER}]*?)\s*(?=[{_UPPER}]|$)",
)
_COMPANY_RE = re.compile(
    rf"([{_UPPER}][\w\s&.,'()\-]+?)\s*"
    rf"(?={re.escape(QUICK_APPLY_MARKER)}|{re.escape(RECOMMENDED_MARKER)}|$)",
)
_COMPANY_FALLBACK_RE = re.compile(
    rf"([{_UPPER}][\w\s&.,\-]{{3,50}}?)\s*(?={re.escape(RECOMMENDED_MARKER)}|$)",
)
_EMPLOYMENT_PREFIX_RE = re.compile(
    r"^(?:Unlimited employment|Limited|Permanent|Contract|Temporary)\s*",
)
_TITLE_RE = re.compile(
    rf"^(?:{_RELATIVE_TIME})?\s*(.+?)(?={re.escape(PLACE_OF_WORK_LABEL)}|$)",
)
_LEADING_RELATIVE_TIME_RE = re.compile(rf"^{_RELATIVE_TIME}\s*")
_LEADING_DASH_RE = re.compile(r"^\s*[-–]\s*")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and strip."""
    return " ".join(text.split())


# --- Field extractors ---


def extract_published_date(text: str) -> str:
    """Relative-time phrase at the very start of the text ("New", "3 days ago")."""
    match = _PUBLISHED_RE.match(text)
    return match.group(1) if match else ""


def extract_location(text: str) -> str:
    match = _LOCATION_RE.search(text)
    return match.group(1).strip() if match else ""


def extract_workload(text: str) -> str:
    match = _WORKLOAD_RE.search(text)
    return match.group(1).strip() if match else ""


def extract_contract_type(text: str) -> str:
    """Value after the contract-type label, up to the next capitalized word."""
    match = _CONTRACT_RE.search(text)
    return match.group(1).strip() if match else ""


def extract_company(text: str) -> str:
    """Company name between the contract-type value and the apply/recommended marker.

    Falls back to the last capitalized run before the apply marker when the
    contract-type anchor is missing or yields nothing.
    """
    company = ""
    contract = _CONTRACT_RE.search(text)
    if contract and contract.group(1).strip():
        match = _COMPANY_RE.search(text[contract.end():])
        if match:
            company = _EMPLOYMENT_PREFIX_RE.sub("", match.group(1).strip()).strip()

    if not company:
        before_apply = text.split(QUICK_APPLY_MARKER)[0]
        match = _COMPANY_FALLBACK_RE.search(before_apply)
        if match:
            company = _EMPLOYMENT_PREFIX_RE.sub("", match.group(1).strip()).strip()

    return company


def extract_title(text: str) -> str:
    """Everything before the place-of-work label, minus a leading relative time."""
    match = _TITLE_RE.match(text)
    if match:
        title = match.group(1).strip()
    else:
        before_location = text.split(PLACE_OF_WORK_LABEL)[0]
        title = _LEADING_RELATIVE_TIME_RE.sub("", before_location).strip()
    return _LEADING_DASH_RE.sub("", title).strip()


FIELD_EXTRACTORS: dict[str, Callable[[str], str]] = {
    "published_date": extract_published_date,
    "title": extract_title,
    "location": extract_location,
    "workload": extract_workload,
    "contract_type": extract_contract_type,
    "company": extract_company,
}


def parse_fields(text: str) -> dict[str, str]:
    """Run every field extractor over the same normalized text."""
    normalized = normalize_text(text)
    return {name: extractor(normalized) for name, extractor in FIELD_EXTRACTORS.items()}


def compose_description(fields: dict[str, str]) -> str:
    """Human-readable summary of the non-empty fields, capped in length."""
    parts: list[str] = []
    if fields.get("published_date"):
        parts.append(fields["published_date"])
    if fields.get("location"):
        parts.append(f"📍 {fields['location']}")
    if fields.get("workload"):
        parts.append(f"⏰ {fields['workload']}")
    if fields.get("contract_type"):
        parts.append(f"📋 {fields['contract_type']}")
    if fields.get("company"):
        parts.append(f"🏢 {fields['company']}")
    return " • ".join(parts)[:MAX_DESCRIPTION_LENGTH]


# --- Page-level helpers ---


def has_next_page(html: str) -> bool:
    """True if the page shows a "next" pagination link."""
    soup = BeautifulSoup(html, "html.parser")
    for link in soup.find_all("a"):
        if link.get_text().strip().lower() == "next":
            return True
        aria = link.get("aria-label")
        if isinstance(aria, str) and "next" in aria.lower():
            return True
    return False


class JobsChParser:
    """Finds posting containers on a rendered listings page and parses them."""

    def __init__(self, min_candidates: int = DEFAULT_MIN_CANDIDATES) -> None:
        self._min_candidates = min_candidates

    def extract(self, page: RawPage, *, first_id: int = 1) -> list[JobRecord]:
        """Extract job records from one page. Ids count up from ``first_id``."""
        soup = BeautifulSoup(page.html, "html.parser")
        root = soup.body or soup

        if QUICK_APPLY_MARKER.lower() not in root.get_text().lower():
            logger.debug("Page %d has no quick-apply marker", page.page_index)
            return []

        containers, seen_urls = self._find_marker_containers(root, page.url)
        if len(containers) < self._min_candidates:
            logger.debug(
                "Only %d marker containers on page %d — walking detail links",
                len(containers), page.page_index,
            )
            containers.extend(self._find_link_containers(root, page.url, seen_urls))

        records: list[JobRecord] = []
        for container, url in containers:
            record = self._parse_container(container, url, page, first_id + len(records))
            if record is not None:
                records.append(record)

        logger.debug(
            "Page %d: %d containers, %d records",
            page.page_index, len(containers), len(records),
        )
        return records

    # --- Private helpers ---

    def _find_marker_containers(
        self, root: Tag, base_url: str,
    ) -> tuple[list[tuple[Tag, str]], set[str]]:
        """Elements whose text carries the quick-apply marker within the length band."""
        marker = QUICK_APPLY_MARKER.lower()
        containers: list[tuple[Tag, str]] = []
        seen_urls: set[str] = set()

        for element in root.find_all(True):
            text = normalize_text(element.get_text())
            if not CONTAINER_MIN_CHARS < len(text) < CONTAINER_MAX_CHARS:
                continue
            if marker not in text.lower():
                continue

            url = self._first_link_url(element, base_url)
            if url and DETAIL_LINK_PATTERN in url:
                # A wrapper around several postings is not itself a posting.
                if len(self._detail_urls(element, base_url)) > 1:
                    continue
                if url in seen_urls:
                    continue
                seen_urls.add(url)
                containers.append((element, url))
            elif not url:
                if PLACE_OF_WORK_LABEL in text and WORKLOAD_LABEL in text:
                    containers.append((element, ""))

        return containers, seen_urls

    def _find_link_containers(
        self, root: Tag, base_url: str, seen_urls: set[str],
    ) -> list[tuple[Tag, str]]:
        """For each unseen detail link, the nearest ancestor that looks like a posting."""
        containers: list[tuple[Tag, str]] = []
        for selector in DETAIL_LINK_SELECTORS:
            for link in root.select(selector):
                url = self._resolve_url(link.get("href"), base_url)
                if not url or url in seen_urls:
                    continue
                parent = link.parent
                while isinstance(parent, Tag) and parent is not root and parent.name != "body":
                    text = normalize_text(parent.get_text())
                    has_labels = PLACE_OF_WORK_LABEL in text and WORKLOAD_LABEL in text
                    if has_labels or len(text) > ANCESTOR_MIN_CHARS:
                        seen_urls.add(url)
                        containers.append((parent, url))
                        break
                    parent = parent.parent
        return containers

    def _parse_container(
        self, container: Tag, url: str, page: RawPage, record_number: int,
    ) -> JobRecord | None:
        """Parse one container. Malformed containers are dropped, never raised."""
        try:
            fields = parse_fields(container.get_text())
            title = fields["title"]
            if not title or len(title) > MAX_TITLE_LENGTH:
                logger.debug("Dropping container with unusable title (%d chars)", len(title))
                return None
            return JobRecord(
                id=f"job_{record_number}",
                title=title,
                company=fields["company"],
                location=fields["location"],
                workload=fields["workload"],
                contract_type=fields["contract_type"],
                published_date=fields["published_date"],
                description=compose_description(fields),
                url=url,
                scraped_at=page.fetched_at,
            )
        except Exception:
            logger.debug("Failed to parse container, skipping", exc_info=True)
            return None

    def _first_link_url(self, element: Tag, base_url: str) -> str:
        link = element if element.name == "a" else element.find("a")
        if not isinstance(link, Tag):
            return ""
        return self._resolve_url(link.get("href"), base_url)

    def _detail_urls(self, element: Tag, base_url: str) -> set[str]:
        urls: set[str] = set()
        for selector in DETAIL_LINK_SELECTORS:
            for link in element.select(selector):
                url = self._resolve_url(link.get("href"), base_url)
                if url:
                    urls.add(url)
        return urls

    @staticmethod
    def _resolve_url(href: object, base_url: str) -> str:
        """Absolute URL without query or fragment, or "" when href is missing."""
        if not isinstance(href, str) or not href.strip():
            return ""
        parsed = urlparse(urljoin(base_url, href.strip()))
        return urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))
