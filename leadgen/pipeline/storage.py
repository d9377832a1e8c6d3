"""Search session persistence, history, cleanup, and export."""

import csv
import io
import json
import logging
import re
import sqlite3
from datetime import datetime, timedelta

from leadgen.core.db import (
    delete_sessions_before,
    get_search_session,
    insert_search_session,
    list_search_history,
)
from leadgen.core.schemas import (
    JobContacts,
    JobRecord,
    SearchHistoryEntry,
    SearchSession,
    SessionMetadata,
)
from leadgen.pipeline.hotness import hotness_stats

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

_TERM_UNSAFE_RE = re.compile(r"[^a-z0-9]")


def make_session_id(search_term: str, timestamp: datetime) -> str:
    """``YYYY-MM-DD_<term>_HH-MM-SS`` with the term reduced to [a-z0-9-]."""
    clean_term = _TERM_UNSAFE_RE.sub("-", search_term.lower())
    return f"{timestamp:%Y-%m-%d}_{clean_term}_{timestamp:%H-%M-%S}"


def save_search_session(
    conn: sqlite3.Connection,
    search_term: str,
    jobs: list[JobRecord],
    metadata: SessionMetadata | None = None,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
    *,
    enrichments: list[JobContacts] | None = None,
    timestamp: datetime | None = None,
) -> SearchSession:
    """Persist a finished crawl and add it to the history index.

    hotness_stats in the stored metadata is always recomputed from jobs.
    """
    timestamp = timestamp or datetime.now()
    metadata = (metadata or SessionMetadata()).model_copy(
        update={"hotness_stats": hotness_stats(jobs)},
    )
    base_id = make_session_id(search_term, timestamp)
    session = SearchSession(
        id=base_id,
        search_term=search_term,
        timestamp=timestamp,
        total_results=len(jobs),
        jobs=jobs,
        metadata=metadata,
        enrichments=enrichments or [],
    )
    jobs_json = json.dumps([j.model_dump(mode="json") for j in jobs])
    enrichments_json = json.dumps([e.model_dump(mode="json") for e in session.enrichments])

    # Stored sessions are never overwritten; a same-second rerun gets "-2", "-3", ...
    suffix = 1
    while True:
        try:
            insert_search_session(
                conn,
                session_id=session.id,
                search_term=search_term,
                timestamp=timestamp,
                total_results=session.total_results,
                jobs_json=jobs_json,
                metadata_json=metadata.model_dump_json(),
                enrichments_json=enrichments_json,
                history_limit=history_limit,
            )
            break
        except sqlite3.IntegrityError:
            suffix += 1
            session = session.model_copy(update={"id": f"{base_id}-{suffix}"})

    logger.info("Saved search session %s (%d jobs)", session.id, session.total_results)
    return session


def get_search_history(conn: sqlite3.Connection) -> list[SearchHistoryEntry]:
    """History summaries, most recent first."""
    return [
        SearchHistoryEntry(
            id=row["id"],
            search_term=row["search_term"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            result_count=row["result_count"],
        )
        for row in list_search_history(conn)
    ]


def get_search_by_id(conn: sqlite3.Connection, session_id: str) -> SearchSession:
    """Load a stored session.

    Raises:
        KeyError: No session with that id.
    """
    row = get_search_session(conn, session_id)
    if row is None:
        msg = f"Search not found: {session_id}"
        raise KeyError(msg)

    return SearchSession(
        id=row["id"],
        search_term=row["search_term"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        total_results=row["total_results"],
        jobs=[JobRecord.model_validate(j) for j in json.loads(row["jobs_json"])],
        metadata=SessionMetadata.model_validate_json(row["metadata_json"]),
        enrichments=[
            JobContacts.model_validate(e) for e in json.loads(row["enrichments_json"] or "[]")
        ],
    )


def cleanup_old_searches(conn: sqlite3.Connection, days_old: int = 30) -> int:
    """Delete sessions older than days_old. Returns the number removed."""
    cutoff = datetime.now() - timedelta(days=days_old)
    removed = delete_sessions_before(conn, cutoff)
    if removed:
        logger.info("Deleted %d search sessions older than %d days", removed, days_old)
    return removed


def export_jobs_json(session: SearchSession) -> str:
    """Export a session's jobs as a JSON document."""
    data = {
        "searchTerm": session.search_term,
        "totalJobs": len(session.jobs),
        "scrapedAt": session.timestamp.isoformat(),
        "jobs": [j.model_dump(mode="json") for j in session.jobs],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_jobs_csv(jobs: list[JobRecord]) -> str:
    """Export jobs as CSV with a header row of field names."""
    fieldnames = list(JobRecord.model_fields)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for job in jobs:
        writer.writerow(job.model_dump(mode="json"))
    return buffer.getvalue()
