"""SQLite database layer for the contact cache and search session history."""

import sqlite3
from datetime import datetime
from pathlib import Path

_CONTACT_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS contact_cache (
    cache_key             TEXT    PRIMARY KEY,
    company               TEXT    NOT NULL,
    domain                TEXT    NOT NULL DEFAULT '',
    search_term           TEXT    NOT NULL DEFAULT '',
    timestamp             TEXT    NOT NULL,
    expires_at            TEXT    NOT NULL,
    contact_results_json  TEXT    NOT NULL,
    seq                   INTEGER NOT NULL
);
"""

_SEARCH_SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS search_sessions (
    id              TEXT    PRIMARY KEY,
    search_term     TEXT    NOT NULL,
    timestamp       TEXT    NOT NULL,
    total_results   INTEGER NOT NULL,
    jobs_json       TEXT    NOT NULL,
    metadata_json   TEXT    NOT NULL,
    enrichments_json TEXT   NOT NULL DEFAULT '[]'
);
"""

_SEARCH_HISTORY_TABLE = """
CREATE TABLE IF NOT EXISTS search_history (
    id              TEXT    PRIMARY KEY,
    search_term     TEXT    NOT NULL,
    timestamp       TEXT    NOT NULL,
    result_count    INTEGER NOT NULL,
    seq             INTEGER NOT NULL
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CONTACT_CACHE_TABLE)
    conn.execute(_SEARCH_SESSIONS_TABLE)
    conn.execute(_SEARCH_HISTORY_TABLE)
    conn.commit()
    return conn


# --- Contact cache ---


def get_cache_row(conn: sqlite3.Connection, cache_key: str) -> sqlite3.Row | None:
    """Return the cache row for a key, or None."""
    return conn.execute(
        "SELECT * FROM contact_cache WHERE cache_key = ?",
        (cache_key,),
    ).fetchone()


def replace_cache_row(
    conn: sqlite3.Connection,
    cache_key: str,
    company: str,
    domain: str,
    search_term: str,
    timestamp: datetime,
    expires_at: datetime,
    contact_results_json: str,
) -> None:
    """Remove any row under cache_key and append a new one at the newest position."""
    with conn:
        conn.execute("DELETE FROM contact_cache WHERE cache_key = ?", (cache_key,))
        conn.execute(
            """
            INSERT INTO contact_cache
                (cache_key, company, domain, search_term, timestamp, expires_at,
                 contact_results_json, seq)
            VALUES (?, ?, ?, ?, ?, ?, ?,
                    (SELECT COALESCE(MAX(seq), 0) + 1 FROM contact_cache))
            """,
            (
                cache_key,
                company,
                domain,
                search_term,
                timestamp.isoformat(),
                expires_at.isoformat(),
                contact_results_json,
            ),
        )


def delete_cache_row(conn: sqlite3.Connection, cache_key: str) -> bool:
    """Delete a cache row. Returns True if a row was removed."""
    with conn:
        cursor = conn.execute("DELETE FROM contact_cache WHERE cache_key = ?", (cache_key,))
    return cursor.rowcount > 0


def list_cache_keys(conn: sqlite3.Connection) -> list[str]:
    """Return all cache keys, oldest insertion first."""
    rows = conn.execute("SELECT cache_key FROM contact_cache ORDER BY seq ASC").fetchall()
    return [row["cache_key"] for row in rows]


# --- Search sessions ---


def insert_search_session(
    conn: sqlite3.Connection,
    session_id: str,
    search_term: str,
    timestamp: datetime,
    total_results: int,
    jobs_json: str,
    metadata_json: str,
    enrichments_json: str,
    history_limit: int,
) -> None:
    """Store a session record and its history summary, trimming history to the limit.

    Raises:
        sqlite3.IntegrityError: If a session with this id is already stored.
    """
    with conn:
        conn.execute(
            """
            INSERT INTO search_sessions
                (id, search_term, timestamp, total_results, jobs_json,
                 metadata_json, enrichments_json)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                search_term,
                timestamp.isoformat(),
                total_results,
                jobs_json,
                metadata_json,
                enrichments_json,
            ),
        )
        conn.execute("DELETE FROM search_history WHERE id = ?", (session_id,))
        conn.execute(
            """
            INSERT INTO search_history (id, search_term, timestamp, result_count, seq)
            VALUES (?, ?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM search_history))
            """,
            (session_id, search_term, timestamp.isoformat(), total_results),
        )
        conn.execute(
            """
            DELETE FROM search_history
            WHERE seq NOT IN (
                SELECT seq FROM search_history ORDER BY seq DESC LIMIT ?
            )
            """,
            (history_limit,),
        )


def get_search_session(conn: sqlite3.Connection, session_id: str) -> sqlite3.Row | None:
    """Return a stored session row, or None."""
    return conn.execute(
        "SELECT * FROM search_sessions WHERE id = ?",
        (session_id,),
    ).fetchone()


def list_search_history(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Return history summaries, most recent first."""
    return conn.execute(
        "SELECT id, search_term, timestamp, result_count FROM search_history ORDER BY seq DESC",
    ).fetchall()


def delete_sessions_before(conn: sqlite3.Connection, cutoff: datetime) -> int:
    """Delete sessions (and their history rows) older than cutoff. Returns the count."""
    with conn:
        cursor = conn.execute(
            "DELETE FROM search_sessions WHERE timestamp < ?",
            (cutoff.isoformat(),),
        )
        conn.execute(
            "DELETE FROM search_history WHERE timestamp < ?",
            (cutoff.isoformat(),),
        )
    return cursor.rowcount
