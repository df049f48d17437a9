"""Link checker CLI: entry-point for crawling and browsing crawl history.

Usage:
    linkcheck --help

Commands:
    crawl     Crawl a site and record the result
    history   List past crawls grouped by day
    show      Show a past crawl, optionally filtered
    clear     Forget every past crawl
    serve     Run the HTTP API
"""

from __future__ import annotations

import asyncio
import sqlite3

import typer

from linkcheck.config import settings
from linkcheck.crawler.service import MockCrawlService
from linkcheck.db import SqliteBlobStorage, get_connection, init_db
from linkcheck.errors import CrawlInProgressError
from linkcheck.history.store import CrawlHistoryStore
from linkcheck.log import configure_logging
from linkcheck.orchestrator import CrawlOrchestrator
from linkcheck.projection import ResultFilter, project
from linkcheck_cli.rendering import render_counts, render_header, render_history, render_results

app = typer.Typer(
    name="linkcheck",
    help="Broken link checker CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    configure_logging("DEBUG" if verbose else None)


def _open_store() -> tuple[sqlite3.Connection, CrawlHistoryStore]:
    conn = get_connection()
    init_db(conn)
    store = CrawlHistoryStore(SqliteBlobStorage(conn))
    store.load()
    return conn, store


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("crawl")
def crawl(
    url: str = typer.Argument(..., help="Site to check, e.g. example.com."),
) -> None:
    """Crawl a site, record it in the history and print its links."""
    conn, store = _open_store()
    try:
        orchestrator = CrawlOrchestrator(MockCrawlService(), store)
        typer.echo(f"[crawl] Checking {url!r} …")
        try:
            session = asyncio.run(orchestrator.submit(url))
        except CrawlInProgressError as exc:
            typer.echo(f"[crawl] {exc}")
            raise typer.Exit(code=1)
    finally:
        conn.close()

    if session is None:
        reason = orchestrator.last_error or "nothing to crawl"
        typer.echo(f"[crawl] Crawl failed: {reason}")
        raise typer.Exit(code=1)

    view = project(session.results)
    typer.echo(render_header(session))
    typer.echo(render_counts(view))
    typer.echo("")
    typer.echo(render_results(view))


@app.command("history")
def history() -> None:
    """List past crawls, newest first, grouped by day."""
    conn, store = _open_store()
    conn.close()
    typer.echo(render_history(store.group_by_day()))


@app.command("show")
def show(
    crawl_id: str = typer.Argument(..., help="Crawl id (as listed by 'history')."),
    filter: ResultFilter = typer.Option(ResultFilter.ALL, "--filter", help="all | broken | ok"),
    search: str = typer.Option("", "--search", help="Only links whose URL contains this text."),
) -> None:
    """Show the results of a past crawl."""
    conn, store = _open_store()
    conn.close()

    session = store.get(crawl_id)
    if session is None:
        typer.echo(f"[show] No crawl with id {crawl_id!r}.")
        raise typer.Exit(code=1)

    view = project(session.results, filter, search)
    typer.echo(render_header(session))
    typer.echo(render_counts(view))
    typer.echo("")
    typer.echo(render_results(view))


@app.command("clear")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Delete every recorded crawl."""
    if not yes:
        typer.confirm("Delete the whole crawl history?", abort=True)
    conn, store = _open_store()
    try:
        count = len(store)
        store.clear()
    finally:
        conn.close()
    typer.echo(f"[clear] Removed {count} crawl(s) from {settings.db_path}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: int = typer.Option(8000, help="Port to listen on."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn  # noqa: PLC0415

    uvicorn.run("linkcheck.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
