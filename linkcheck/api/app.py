"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection, initialises the schema,
loads the crawl history from it and builds the :class:`CrawlOrchestrator`
shared by every request (``request.app.state.orchestrator``).  On shutdown it
closes the connection cleanly.

Routers
-------
    /crawls    start crawls, browse history, filter a crawl's results
    /view      the current view state (idle / crawling / viewing), deep links
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkcheck.crawler.service import MockCrawlService
from linkcheck.db import SqliteBlobStorage, get_connection, init_db
from linkcheck.history.store import CrawlHistoryStore
from linkcheck.log import configure_logging
from linkcheck.orchestrator import CrawlOrchestrator

from linkcheck.api.routers import crawls as crawls_router
from linkcheck.api.routers import view as view_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB and load history on startup; close the DB on shutdown."""
    conn = get_connection()
    init_db(conn)
    store = CrawlHistoryStore(SqliteBlobStorage(conn))
    store.load()
    app.state.orchestrator = CrawlOrchestrator(MockCrawlService(), store)
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging()
    app = FastAPI(
        title="Broken Link Checker API",
        description=(
            "Backend for the broken link checker UI. Runs (mock) crawls of a "
            "site, keeps a persisted history of past crawls and serves "
            "filtered views of their results."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(crawls_router.router, prefix="/crawls", tags=["crawls"])
    app.include_router(view_router.router, prefix="/view", tags=["view"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn linkcheck.api.app:app --reload
app = create_app()
