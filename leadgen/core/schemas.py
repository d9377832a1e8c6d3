"""Core data models for the lead pipeline."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 300

ContactConfidence = Literal["high", "medium", "low", "unknown"]
HotnessLevel = Literal["hot", "warm", "cold", ""]


class RawPage(BaseModel):
    """One settled listings page as rendered by the browser."""

    model_config = ConfigDict(frozen=True)

    url: str
    page_index: int
    html: str
    fetched_at: datetime = Field(default_factory=datetime.now)


class JobRecord(BaseModel):
    """A job posting extracted from a listings page.

    Frozen — hotness is attached via model_copy, not mutated.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH)
    company: str = ""
    location: str = ""
    workload: str = ""
    contract_type: str = ""
    published_date: str = ""
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    url: str = ""
    hotness_level: HotnessLevel = ""
    scraped_at: datetime = Field(default_factory=datetime.now)


class ContactRecord(BaseModel):
    """A staff contact discovered for a company domain."""

    model_config = ConfigDict(frozen=True)

    email: str
    first_name: str = ""
    last_name: str = ""
    position: str = ""
    department: str = ""
    confidence: ContactConfidence = "unknown"
    score: int = 0


class ContactResult(BaseModel):
    """Ranked contacts for one domain.

    ``confidence`` is "high" exactly when at least one contact survived.
    """

    contacts: list[ContactRecord] = Field(default_factory=list)
    domain: str = ""
    confidence: Literal["high", "low"] = "low"
    total_found: int = 0
    error: str | None = None

    @model_validator(mode="after")
    def confidence_matches_contacts(self) -> "ContactResult":
        expected = "high" if self.contacts else "low"
        if self.confidence != expected:
            msg = f"confidence must be '{expected}' for {len(self.contacts)} contacts"
            raise ValueError(msg)
        return self


class JobContacts(ContactResult):
    """A ContactResult annotated with the job it was produced for."""

    company: str = ""
    job_id: str = ""
    job_title: str = ""
    search_term: str = ""
    cached: bool = False


class CacheEntry(BaseModel):
    """A persisted ContactResult with its validity window."""

    cache_key: str
    company: str
    domain: str = ""
    search_term: str = ""
    timestamp: datetime
    expires_at: datetime
    contact_results: ContactResult


class SessionMetadata(BaseModel):
    """Run statistics stored alongside a search session."""

    search_duration_ms: int | None = None
    pages_crawled: int = 0
    stop_reason: str = ""
    hotness_stats: dict[str, int] = Field(
        default_factory=lambda: {"hot": 0, "warm": 0, "cold": 0},
    )


class SearchSession(BaseModel):
    """A persisted crawl result. Never modified after it is saved."""

    model_config = ConfigDict(frozen=True)

    id: str
    search_term: str
    timestamp: datetime
    total_results: int
    jobs: list[JobRecord] = Field(default_factory=list)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)
    enrichments: list[JobContacts] = Field(default_factory=list)


class SearchHistoryEntry(BaseModel):
    """Summary row in the bounded search history index."""

    id: str
    search_term: str
    timestamp: datetime
    result_count: int


class EmailDraft(BaseModel):
    """Outcome of drafting one outreach email."""

    success: bool
    email_content: str = ""
    job: JobRecord
    contact: ContactRecord
    error: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
