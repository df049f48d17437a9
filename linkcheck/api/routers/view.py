"""Current view endpoint.

Routes
------
GET /view?id=<crawl id>&filter=all|broken|ok&search=

Returns what the checker page should show right now: whether a crawl is
running, which crawl is selected, and that crawl's filtered results.  Passing
``id`` follows a deep link; an id that is not in the history is ignored and
the previous view is kept.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query, Request

from linkcheck.api.routers.crawls import orchestrator_of, summary_dict, view_dict
from linkcheck.projection import ResultFilter, project

router = APIRouter()


@router.get("", response_model=dict[str, Any])
def get_view_endpoint(
    request: Request,
    id: Optional[str] = None,
    filter: ResultFilter = Query(ResultFilter.ALL),
    search: str = "",
) -> dict[str, Any]:
    orchestrator = orchestrator_of(request)
    if id:
        orchestrator.select(id)

    state = orchestrator.state
    current = orchestrator.current
    return {
        "state": state.phase.value,
        "selected_id": orchestrator.store.selected_id,
        "view_reference": orchestrator.view_reference,
        "last_error": orchestrator.last_error,
        "crawl": summary_dict(current) if current else None,
        "results": view_dict(project(current.results, filter, search)) if current else None,
    }
