"""Configuration models and YAML loader for the lead pipeline."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class SearchConfig(BaseModel):
    """A single configured listings search."""

    keyword: str
    max_pages: int | None = Field(default=None, ge=1, le=10)
    enrich_contacts: bool = False

    @field_validator("keyword")
    @classmethod
    def keyword_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "keyword must not be empty"
            raise ValueError(msg)
        return v.strip()


class BrowserConfig(BaseModel):
    """Browser session configuration."""

    cookies_path: str | None = None
    timeout_ms: int = Field(default=30000, ge=1000)
    headless: bool = False
    locale: str = "en-US"
    launch_args: list[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-setuid-sandbox"],
    )


class CrawlConfig(BaseModel):
    """Listings crawl behaviour."""

    base_url: str = "https://www.jobs.ch/en/vacancies/"
    max_pages: int = Field(default=5, ge=1, le=10)
    page_delay_min: float = Field(default=2.0, ge=0.0)
    page_delay_max: float = Field(default=4.0, ge=0.0)
    overlay_timeout_ms: int = Field(default=2000, ge=100)
    min_candidates: int = Field(default=5, ge=1)
    screenshot_dir: str | None = None

    @model_validator(mode="after")
    def delay_range_ordered(self) -> "CrawlConfig":
        if self.page_delay_max < self.page_delay_min:
            msg = "page_delay_max must be >= page_delay_min"
            raise ValueError(msg)
        return self


class WebSearchConfig(BaseModel):
    """Web search used for company domain resolution."""

    api_key_env: str = "GOOGLE_API_KEY"
    engine_id_env: str = "GOOGLE_SEARCH_ENGINE_ID"
    timeout_s: float = Field(default=10.0, gt=0.0)
    results_considered: int = Field(default=3, ge=1)
    denylist: list[str] = Field(
        default_factory=lambda: [
            "linkedin.com",
            "facebook.com",
            "wikipedia.org",
            "jobs.ch",
            "indeed.com",
        ],
    )


class ContactsConfig(BaseModel):
    """Contact provider settings."""

    api_key_env: str = "HUNTER_API_KEY"
    timeout_s: float = Field(default=15.0, gt=0.0)
    lookup_limit: int = Field(default=10, ge=1, le=100)
    max_contacts: int = Field(default=8, ge=1)


class CacheConfig(BaseModel):
    """Enrichment cache policy."""

    ttl_days: int = Field(default=7, ge=1)
    capacity: int = Field(default=100, ge=1)


class SessionsConfig(BaseModel):
    """Search session history retention."""

    history_limit: int = Field(default=50, ge=1)
    retention_days: int = Field(default=30, ge=1)


class PipelineConfig(BaseModel):
    """Orchestration knobs."""

    enrich_concurrency: int = Field(default=4, ge=1, le=32)


class OutreachConfig(BaseModel):
    """Outreach email drafting."""

    provider: Literal["openai", "anthropic"] = "openai"
    model: str | None = None
    sender_name: str = "Thomas"
    sender_company: str = "DESIGNSNACK"
    max_tokens: int = Field(default=500, ge=50)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/leads.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    search: WebSearchConfig = Field(default_factory=WebSearchConfig)
    contacts: ContactsConfig = Field(default_factory=ContactsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    outreach: OutreachConfig = Field(default_factory=OutreachConfig)
    searches: list[SearchConfig] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
