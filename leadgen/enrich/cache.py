"""Enrichment cache: (company, domain) → ContactResult with a TTL.

Policy lives here; storage lives in a CacheBackend:
  - TTL is checked on read. An expired entry is deleted by the read that finds it.
  - Re-caching a key removes the old entry and appends the new one.
  - At most ``capacity`` entries are kept; the oldest insertions go first.
  - Storage problems degrade to "miss" / "not written" and are logged.
"""

import asyncio
import json
import logging
import re
import sqlite3
import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta

from pydantic import ValidationError

from leadgen.core.db import (
    delete_cache_row,
    get_cache_row,
    list_cache_keys,
    replace_cache_row,
)
from leadgen.core.errors import CacheIOError
from leadgen.core.schemas import CacheEntry, ContactResult

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)
DEFAULT_CAPACITY = 100

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def make_cache_key(company: str, domain: str | None) -> str:
    """Normalize company and domain independently and join them."""
    clean_company = _NON_ALNUM_RE.sub("", company.lower())
    clean_domain = _NON_ALNUM_RE.sub("", domain.lower()) if domain else ""
    return f"{clean_company}_{clean_domain}"


class CacheBackend(ABC):
    """Key-value storage for CacheEntry objects, remembering insertion order."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        """Return the entry or None. Raises CacheIOError on unreadable data."""

    @abstractmethod
    def put(self, entry: CacheEntry) -> None:
        """Replace any entry under entry.cache_key; the new one becomes newest."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if one existed."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys, oldest insertion first."""


class InMemoryCacheBackend(CacheBackend):
    """Process-local backend (dicts keep insertion order)."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def put(self, entry: CacheEntry) -> None:
        self._entries.pop(entry.cache_key, None)
        self._entries[entry.cache_key] = entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._entries)


class SqliteCacheBackend(CacheBackend):
    """Backend on the contact_cache table. Each write is one transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> CacheEntry | None:
        try:
            row = get_cache_row(self._conn, key)
        except sqlite3.Error as e:
            msg = f"Failed to read cache entry {key}: {e}"
            raise CacheIOError(msg) from e
        if row is None:
            return None
        try:
            return CacheEntry(
                cache_key=row["cache_key"],
                company=row["company"],
                domain=row["domain"],
                search_term=row["search_term"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
                expires_at=datetime.fromisoformat(row["expires_at"]),
                contact_results=ContactResult.model_validate_json(row["contact_results_json"]),
            )
        except (ValueError, ValidationError, json.JSONDecodeError) as e:
            msg = f"Corrupt cache entry {key}: {e}"
            raise CacheIOError(msg) from e

    def put(self, entry: CacheEntry) -> None:
        try:
            replace_cache_row(
                self._conn,
                cache_key=entry.cache_key,
                company=entry.company,
                domain=entry.domain,
                search_term=entry.search_term,
                timestamp=entry.timestamp,
                expires_at=entry.expires_at,
                contact_results_json=entry.contact_results.model_dump_json(),
            )
        except sqlite3.Error as e:
            msg = f"Failed to write cache entry {entry.cache_key}: {e}"
            raise CacheIOError(msg) from e

    def delete(self, key: str) -> bool:
        try:
            return delete_cache_row(self._conn, key)
        except sqlite3.Error as e:
            msg = f"Failed to delete cache entry {key}: {e}"
            raise CacheIOError(msg) from e

    def keys(self) -> list[str]:
        try:
            return list_cache_keys(self._conn)
        except sqlite3.Error as e:
            msg = f"Failed to list cache keys: {e}"
            raise CacheIOError(msg) from e


class EnrichmentCache:
    """TTL cache of contact discovery results.

    Usage::

        cache = EnrichmentCache(SqliteCacheBackend(conn))
        async with cache.key_lock(company, domain):
            result = cache.get(company, domain)
            if result is None:
                result = await discover(...)
                cache.put(company, domain, search_term, result)
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        ttl: timedelta = DEFAULT_TTL,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._backend = backend
        self._ttl = ttl
        self._capacity = capacity
        self._clock = clock
        # Entries vanish once no holder or waiter references the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def key_lock(self, company: str, domain: str | None) -> asyncio.Lock:
        """Lock serializing read-discover-write for one key within this process."""
        key = make_cache_key(company, domain)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def get(self, company: str, domain: str | None) -> ContactResult | None:
        """Return the cached result, or None if absent, expired, or unreadable."""
        key = make_cache_key(company, domain)
        try:
            entry = self._backend.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                logger.info("Cache expired for %s, removing", company)
                self._backend.delete(key)
                return None
        except CacheIOError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None

        logger.info("Found cached contacts for %s (%s)", company, domain)
        return entry.contact_results

    def domain_for(self, company: str) -> str | None:
        """Domain of the newest fresh entry cached for company, if any.

        Lets a caller reach a cache hit without resolving the domain first.
        """
        prefix = make_cache_key(company, None)
        now = self._clock()
        try:
            for key in reversed(self._backend.keys()):
                if not key.startswith(prefix):
                    continue
                entry = self._backend.get(key)
                if entry is not None and now <= entry.expires_at and entry.domain:
                    return entry.domain
        except CacheIOError as e:
            logger.warning("Cache scan failed for %s: %s", company, e)
        return None

    def put(
        self,
        company: str,
        domain: str | None,
        search_term: str,
        result: ContactResult,
    ) -> str | None:
        """Cache result under (company, domain). Returns the key, or None if not written."""
        key = make_cache_key(company, domain)
        now = self._clock()
        entry = CacheEntry(
            cache_key=key,
            company=company,
            domain=domain or "",
            search_term=search_term,
            timestamp=now,
            expires_at=now + self._ttl,
            contact_results=result,
        )
        try:
            self._backend.put(entry)
            self._evict()
        except CacheIOError as e:
            logger.warning("Cache write failed for %s: %s", key, e)
            return None

        logger.info("Cached contacts for %s (%s)", company, domain)
        return key

    def sweep(self) -> int:
        """Delete expired and unreadable entries. Returns how many were removed."""
        removed = 0
        now = self._clock()
        try:
            keys = self._backend.keys()
        except CacheIOError as e:
            logger.warning("Cache sweep failed: %s", e)
            return 0

        for key in keys:
            try:
                entry = self._backend.get(key)
            except CacheIOError:
                logger.info("Deleting unreadable cache entry %s", key)
                entry = None
                if self._delete_quietly(key):
                    removed += 1
                continue
            if entry is not None and now > entry.expires_at:
                if self._delete_quietly(key):
                    removed += 1

        logger.info("Cache sweep removed %d entries", removed)
        return removed

    def _evict(self) -> None:
        keys = self._backend.keys()
        overflow = len(keys) - self._capacity
        for key in keys[:max(overflow, 0)]:
            self._backend.delete(key)
        if overflow > 0:
            logger.debug("Evicted %d oldest cache entries", overflow)

    def _delete_quietly(self, key: str) -> bool:
        try:
            return self._backend.delete(key)
        except CacheIOError as e:
            logger.warning("Cache delete failed for %s: %s", key, e)
            return False
