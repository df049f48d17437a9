"""Crawl endpoints.

Routes
------
GET    /crawls                     History summaries, newest first
GET    /crawls/by-day              History grouped by completion day
POST   /crawls                     Body: {"url": "..."} → run a crawl
DELETE /crawls                     Forget the whole history
GET    /crawls/{id}                One crawl with all its results
GET    /crawls/{id}/results        Filtered view: ?filter=all|broken|ok&search=
POST   /crawls/{id}/select         Make a past crawl the current view
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel

from linkcheck.crawler.models import CrawlSession
from linkcheck.errors import CrawlInProgressError
from linkcheck.orchestrator import CrawlOrchestrator, view_reference
from linkcheck.projection import ResultFilter, ResultView, project

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CrawlRequest(BaseModel):
    url: str


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def orchestrator_of(request: Request) -> CrawlOrchestrator:
    return request.app.state.orchestrator


def summary_dict(session: CrawlSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "url": session.url,
        "hostname": session.hostname,
        "date": session.date,
        "total": session.total,
        "working_count": session.working_count,
        "broken_count": session.broken_count,
    }


def session_dict(session: CrawlSession) -> dict[str, Any]:
    data = session.to_dict()
    data["view_reference"] = view_reference(session.id)
    return data


def view_dict(view: ResultView) -> dict[str, Any]:
    return {
        "total": view.total,
        "working_count": view.working_count,
        "broken_count": view.broken_count,
        "results": [r.to_dict() for r in view.results],
    }


def _get_or_404(orchestrator: CrawlOrchestrator, crawl_id: str) -> CrawlSession:
    session = orchestrator.store.get(crawl_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Crawl '{crawl_id}' not found.")
    return session


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[dict[str, Any]])
def list_crawls_endpoint(request: Request) -> list[dict[str, Any]]:
    """Return every past crawl, most recent first."""
    store = orchestrator_of(request).store
    return [summary_dict(s) for s in store.sessions]


@router.get("/by-day", response_model=list[dict[str, Any]])
def crawls_by_day_endpoint(request: Request) -> list[dict[str, Any]]:
    """Return past crawls grouped by the day they completed on."""
    store = orchestrator_of(request).store
    return [
        {"day": day, "crawls": [summary_dict(s) for s in sessions]}
        for day, sessions in store.group_by_day()
    ]


@router.post("", status_code=201, response_model=dict[str, Any])
async def create_crawl_endpoint(body: CrawlRequest, request: Request) -> dict[str, Any]:
    """Crawl ``body.url`` and record it as the current crawl.

    A url without a scheme is crawled over ``https://``.
    """
    orchestrator = orchestrator_of(request)
    try:
        session = await orchestrator.submit(body.url)
    except CrawlInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    if session is None:
        if orchestrator.last_error:
            raise HTTPException(
                status_code=502, detail=f"Crawl failed: {orchestrator.last_error}"
            )
        raise HTTPException(status_code=422, detail="URL must not be empty.")
    return session_dict(session)


@router.delete("", status_code=204)
def clear_crawls_endpoint(request: Request) -> Response:
    """Delete the whole crawl history."""
    orchestrator_of(request).clear()
    return Response(status_code=204)


@router.get("/{crawl_id}", response_model=dict[str, Any])
def get_crawl_endpoint(crawl_id: str, request: Request) -> dict[str, Any]:
    """Return one crawl with all of its results."""
    return session_dict(_get_or_404(orchestrator_of(request), crawl_id))


@router.get("/{crawl_id}/results", response_model=dict[str, Any])
def get_crawl_results_endpoint(
    crawl_id: str,
    request: Request,
    filter: ResultFilter = Query(ResultFilter.ALL),
    search: str = "",
) -> dict[str, Any]:
    """Return the results of a crawl narrowed by status filter and search term.

    Counts are always over the unfiltered results.
    """
    session = _get_or_404(orchestrator_of(request), crawl_id)
    return view_dict(project(session.results, filter, search))


@router.post("/{crawl_id}/select", response_model=dict[str, Any])
def select_crawl_endpoint(crawl_id: str, request: Request) -> dict[str, Any]:
    """Make *crawl_id* the crawl currently on screen."""
    orchestrator = orchestrator_of(request)
    if not orchestrator.select(crawl_id):
        raise HTTPException(status_code=404, detail=f"Crawl '{crawl_id}' not found.")
    return {
        "state": orchestrator.state.phase.value,
        "selected_id": orchestrator.store.selected_id,
        "view_reference": orchestrator.view_reference,
    }
