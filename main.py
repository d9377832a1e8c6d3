"""CLI entry point for the jobs.ch lead pipeline."""

import argparse
import asyncio
import json
import logging
import sqlite3
import sys
from datetime import timedelta

import httpx

from leadgen.browser.session import BrowserSession
from leadgen.core.config import SearchConfig, Settings
from leadgen.core.db import init_db
from leadgen.core.errors import FatalInitError
from leadgen.core.schemas import JobContacts, JobRecord, SearchSession
from leadgen.enrich.cache import EnrichmentCache, SqliteCacheBackend
from leadgen.enrich.contacts import ContactDiscoverer
from leadgen.enrich.domain import DomainResolver
from leadgen.enrich.providers import HunterClient
from leadgen.enrich.search import GoogleSearchClient
from leadgen.outreach.llm import get_provider
from leadgen.outreach.writer import generate_outreach_email
from leadgen.pipeline.orchestrator import LeadPipeline
from leadgen.pipeline.storage import (
    cleanup_old_searches,
    export_jobs_csv,
    export_jobs_json,
    get_search_by_id,
    get_search_history,
)
from leadgen.platforms.base import ListingPlatform
from leadgen.platforms.jobsch.adapter import JobsChCrawler
from leadgen.platforms.jobsch.searcher import build_url


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="jobs.ch lead pipeline - crawl listings, find company contacts, draft outreach",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- search ---
    search_parser = subparsers.add_parser("search", help="Crawl listings and store a session")
    _add_common(search_parser)
    search_parser.add_argument(
        "--term",
        help="Search term (default: the searches configured in the settings file)",
    )
    search_parser.add_argument(
        "--pages",
        type=int,
        choices=range(1, 11),
        metavar="N",
        help="Maximum listings pages to crawl (1-10)",
    )
    search_parser.add_argument(
        "--contacts",
        action="store_true",
        help="Find company contacts for every job found",
    )
    search_parser.add_argument(
        "--export",
        choices=["json", "csv"],
        help="Print the jobs in this format after the crawl",
    )
    search_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be crawled without launching a browser",
    )

    # --- contacts ---
    contacts_parser = subparsers.add_parser(
        "contacts",
        help="Find contacts for the jobs of a stored session",
    )
    _add_common(contacts_parser)
    contacts_parser.add_argument("--session", required=True, help="Stored session id")
    contacts_parser.add_argument("--job", help="Only this job id (default: all jobs)")

    # --- history ---
    history_parser = subparsers.add_parser("history", help="List recent search sessions")
    _add_common(history_parser)

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Print a stored session as JSON")
    _add_common(show_parser)
    show_parser.add_argument("session_id", help="Stored session id")

    # --- sweep ---
    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Delete expired cache entries and old sessions",
    )
    _add_common(sweep_parser)

    # --- draft ---
    draft_parser = subparsers.add_parser(
        "draft",
        help="Draft an outreach email for a job's best contact",
    )
    _add_common(draft_parser)
    draft_parser.add_argument("--session", required=True, help="Stored session id")
    draft_parser.add_argument("--job", required=True, help="Job id within the session")
    draft_parser.add_argument("--contact", help="Contact email (default: highest scored)")

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_pipeline(
    settings: Settings,
    conn: sqlite3.Connection,
    http_client: httpx.AsyncClient,
    crawler: ListingPlatform | None = None,
) -> LeadPipeline:
    """Wire the enrichment components around an optional crawler."""
    resolver = DomainResolver(
        GoogleSearchClient(settings.search, http_client),
        denylist=settings.search.denylist,
        results_considered=settings.search.results_considered,
    )
    discoverer = ContactDiscoverer(
        HunterClient(settings.contacts, http_client),
        lookup_limit=settings.contacts.lookup_limit,
        max_contacts=settings.contacts.max_contacts,
    )
    cache = EnrichmentCache(
        SqliteCacheBackend(conn),
        ttl=timedelta(days=settings.cache.ttl_days),
        capacity=settings.cache.capacity,
    )
    return LeadPipeline(crawler, resolver, discoverer, cache, conn, settings)


def _searches_for(args: argparse.Namespace, settings: Settings) -> list[SearchConfig]:
    if args.term:
        return [
            SearchConfig(keyword=args.term, max_pages=args.pages, enrich_contacts=args.contacts),
        ]
    return [
        s.model_copy(update={
            "max_pages": args.pages or s.max_pages,
            "enrich_contacts": args.contacts or s.enrich_contacts,
        })
        for s in settings.searches
    ]


def dry_run(settings: Settings, searches: list[SearchConfig]) -> None:
    """Print what would happen without launching a browser."""
    print(f"[DRY RUN] {len(searches)} searches")
    for search in searches:
        max_pages = search.max_pages or settings.crawl.max_pages
        print(f"[DRY RUN] '{search.keyword}': up to {max_pages} pages")
        print(f"  First page: {build_url(settings.crawl.base_url, search.keyword)}")
        print(f"  Find contacts: {'yes' if search.enrich_contacts else 'no'}")
    print("[DRY RUN] Would store 0 sessions (no browser in dry-run)")


def _print_enrichment(item: JobContacts) -> None:
    source = "cached" if item.cached else "fresh"
    print(f"  {item.job_id} {item.company or '-'} ({item.domain or 'no domain'}, {source})")
    if item.error:
        print(f"    error: {item.error}")
    for contact in item.contacts:
        name = f"{contact.first_name} {contact.last_name}".strip() or "-"
        print(f"    [{contact.score:2d}] {contact.email} {name} ({contact.position or '-'})")


async def run_search(
    settings: Settings,
    searches: list[SearchConfig],
    export_format: str | None,
) -> None:
    """Run the configured searches with a real browser."""
    conn = init_db(settings.database.path)
    sessions: list[SearchSession] = []

    try:
        async with httpx.AsyncClient() as http_client, BrowserSession(settings.browser) as browser:
            crawler = JobsChCrawler(browser.page, settings.crawl)
            pipeline = build_pipeline(settings, conn, http_client, crawler)
            for search in searches:
                session = await pipeline.run(
                    search.keyword,
                    search.max_pages,
                    enrich_contacts=search.enrich_contacts,
                )
                sessions.append(session)
    finally:
        conn.close()

    for session in sessions:
        meta = session.metadata
        print(
            f"\n'{session.search_term}': {session.total_results} jobs from "
            f"{meta.pages_crawled} pages (stopped: {meta.stop_reason})",
        )
        print(f"  Session: {session.id}")
        print(f"  Hotness: {meta.hotness_stats}")
        for item in session.enrichments:
            _print_enrichment(item)

        if export_format == "json":
            print(f"\n{export_jobs_json(session)}")
        elif export_format == "csv":
            print(f"\n{export_jobs_csv(session.jobs)}")


async def cmd_contacts(settings: Settings, session_id: str, job_id: str | None) -> None:
    conn = init_db(settings.database.path)
    try:
        session = get_search_by_id(conn, session_id)
        jobs = [_find_job(session, job_id)] if job_id else session.jobs
        async with httpx.AsyncClient() as http_client:
            pipeline = build_pipeline(settings, conn, http_client)
            results = await pipeline.enrich_all(jobs, session.search_term)
    finally:
        conn.close()

    print(f"Contacts for '{session.search_term}' ({len(results)} jobs):")
    for item in results:
        _print_enrichment(item)


async def cmd_draft(
    settings: Settings,
    session_id: str,
    job_id: str,
    contact_email: str | None,
) -> None:
    provider = get_provider(settings.outreach.provider)
    conn = init_db(settings.database.path)
    try:
        session = get_search_by_id(conn, session_id)
        job = _find_job(session, job_id)
        async with httpx.AsyncClient() as http_client:
            pipeline = build_pipeline(settings, conn, http_client)
            enrichment = await pipeline.enrich(job, session.search_term)
    finally:
        conn.close()

    contacts = enrichment.contacts
    if contact_email:
        contacts = [c for c in contacts if c.email.lower() == contact_email.lower()]
    if not contacts:
        msg = f"No contacts available for {job.company or job.id}"
        raise ValueError(msg)

    draft = generate_outreach_email(
        job, contacts[0], session.search_term, provider, settings.outreach,
    )
    if not draft.success:
        msg = f"Email generation failed: {draft.error}"
        raise ValueError(msg)
    print(f"To: {draft.contact.email}\n")
    print(draft.email_content)


def cmd_history(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        entries = get_search_history(conn)
    finally:
        conn.close()

    if not entries:
        print("No searches yet.")
        return
    for entry in entries:
        print(
            f"{entry.id}  '{entry.search_term}'  {entry.result_count} jobs  "
            f"{entry.timestamp:%Y-%m-%d %H:%M}",
        )


def cmd_show(settings: Settings, session_id: str) -> None:
    conn = init_db(settings.database.path)
    try:
        session = get_search_by_id(conn, session_id)
    finally:
        conn.close()

    print(export_jobs_json(session))
    if session.enrichments:
        enrichments = [e.model_dump(mode="json") for e in session.enrichments]
        print(json.dumps(enrichments, indent=2, ensure_ascii=False))


def cmd_sweep(settings: Settings) -> None:
    conn = init_db(settings.database.path)
    try:
        cache = EnrichmentCache(
            SqliteCacheBackend(conn),
            ttl=timedelta(days=settings.cache.ttl_days),
            capacity=settings.cache.capacity,
        )
        removed_entries = cache.sweep()
        removed_sessions = cleanup_old_searches(conn, settings.sessions.retention_days)
    finally:
        conn.close()

    print(f"Removed {removed_entries} cache entries and {removed_sessions} sessions.")


def _find_job(session: SearchSession, job_id: str) -> JobRecord:
    for job in session.jobs:
        if job.id == job_id:
            return job
    msg = f"Job {job_id} not found in session {session.id}"
    raise KeyError(msg)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.from_yaml(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "search":
            searches = _searches_for(args, settings)
            if not searches:
                print("Error: no --term given and no searches configured", file=sys.stderr)
                sys.exit(1)
            if args.dry_run:
                dry_run(settings, searches)
            else:
                asyncio.run(run_search(settings, searches, args.export))
        elif args.command == "contacts":
            asyncio.run(cmd_contacts(settings, args.session, args.job))
        elif args.command == "draft":
            asyncio.run(cmd_draft(settings, args.session, args.job, args.contact))
        elif args.command == "history":
            cmd_history(settings)
        elif args.command == "show":
            cmd_show(settings, args.session_id)
        elif args.command == "sweep":
            cmd_sweep(settings)
    except FatalInitError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyError as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
        sys.exit(1)
    except (ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
