"""Tests for the /crawls and /view API endpoints.

The TestClient lifespan opens a SQLite database inside a per-test temporary
workspace, so every test starts with an empty history.  The mock crawl delay
is set to zero.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from linkcheck.api.app import create_app
from linkcheck.crawler.models import LinkRecord
from linkcheck.crawler.service import CrawlService
from linkcheck.db import SqliteBlobStorage, get_connection, init_db
from linkcheck.errors import CrawlFailedError
from linkcheck.history.storage import MemoryBlobStorage
from linkcheck.history.store import CrawlHistoryStore
from linkcheck.orchestrator import CrawlOrchestrator


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FailingService(CrawlService):
    async def crawl(self, url: str) -> list[LinkRecord]:
        raise CrawlFailedError(url, "timed out")


class BlockingService(CrawlService):
    def __init__(self) -> None:
        self.release = asyncio.Event()

    async def crawl(self, url: str) -> list[LinkRecord]:
        await self.release.wait()
        return [LinkRecord(f"{url}/x", url, 200, True)]


def _memory_orchestrator(service: CrawlService) -> CrawlOrchestrator:
    store = CrawlHistoryStore(MemoryBlobStorage(), max_history=0)
    store.load()
    return CrawlOrchestrator(service, store)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def workspace(tmp_path, monkeypatch):
    monkeypatch.setattr("linkcheck.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("linkcheck.config.settings.crawl_delay", 0.0)
    monkeypatch.setattr("linkcheck.config.settings.max_history", 0)
    return tmp_path


@pytest.fixture()
def client(workspace):
    app = create_app()
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _crawl(client, url: str = "example.com") -> dict:
    resp = client.post("/crawls", json={"url": url})
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# POST /crawls
# ---------------------------------------------------------------------------

class TestCreateCrawl:
    def test_end_to_end_example_com(self, client):
        data = _crawl(client, "example.com")

        assert data["url"] == "https://example.com"
        assert len(data["results"]) == 9
        assert sum(r["ok"] for r in data["results"]) == 5
        assert data["view_reference"] == f"?id={data['id']}"

        view = client.get("/view").json()
        assert view["state"] == "viewing"
        assert view["selected_id"] == data["id"]

    def test_keeps_http_scheme(self, client):
        assert _crawl(client, "http://plain.org")["url"] == "http://plain.org"

    def test_result_field_names(self, client):
        record = _crawl(client)["results"][0]
        assert set(record) == {"url", "sourceUrl", "status", "ok"}

    def test_empty_url_is_rejected(self, client):
        resp = client.post("/crawls", json={"url": ""})
        assert resp.status_code == 422
        assert client.get("/crawls").json() == []

    def test_missing_url_is_rejected(self, client):
        assert client.post("/crawls", json={}).status_code == 422

    def test_failure_returns_502_and_keeps_history(self, client):
        first = _crawl(client)
        old = client.app.state.orchestrator  # type: ignore[attr-defined]
        client.app.state.orchestrator = CrawlOrchestrator(FailingService(), old.store)  # type: ignore[attr-defined]

        resp = client.post("/crawls", json={"url": "down.example"})
        assert resp.status_code == 502
        assert "timed out" in resp.json()["detail"]

        ids = [c["id"] for c in client.get("/crawls").json()]
        assert ids == [first["id"]]
        view = client.get("/view").json()
        assert view["state"] == "viewing"
        assert view["selected_id"] == first["id"]
        assert view["crawl"]["id"] == first["id"]
        assert view["last_error"]

    def test_failure_without_history_is_idle(self, client):
        old = client.app.state.orchestrator  # type: ignore[attr-defined]
        client.app.state.orchestrator = CrawlOrchestrator(FailingService(), old.store)  # type: ignore[attr-defined]

        assert client.post("/crawls", json={"url": "down.example"}).status_code == 502
        view = client.get("/view").json()
        assert view["state"] == "idle"
        assert view["crawl"] is None

    def test_persists_across_app_restarts(self, workspace):
        with TestClient(create_app()) as c:
            created = _crawl(c)
        with TestClient(create_app()) as c:
            listed = c.get("/crawls").json()
            assert [item["id"] for item in listed] == [created["id"]]
            assert c.get("/view").json()["state"] == "idle"


class TestSingleFlight:
    async def test_concurrent_submit_gets_409(self):
        app = create_app()
        service = BlockingService()
        orchestrator = _memory_orchestrator(service)
        app.state.orchestrator = orchestrator

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            first = asyncio.create_task(ac.post("/crawls", json={"url": "a.com"}))
            for _ in range(100):
                if orchestrator.is_crawling:
                    break
                await asyncio.sleep(0)
            assert orchestrator.is_crawling

            second = await ac.post("/crawls", json={"url": "b.com"})
            assert second.status_code == 409

            view = await ac.get("/view")
            assert view.json()["state"] == "crawling"

            service.release.set()
            resp = await first
            assert resp.status_code == 201
            assert resp.json()["url"] == "https://a.com"

        assert len(orchestrator.store) == 1


# ---------------------------------------------------------------------------
# GET /crawls, /crawls/by-day, /crawls/{id}
# ---------------------------------------------------------------------------

class TestListCrawls:
    def test_empty(self, client):
        resp = client.get("/crawls")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_newest_first_with_counts(self, client):
        a = _crawl(client, "a.com")
        b = _crawl(client, "b.com")
        listed = client.get("/crawls").json()
        assert [c["id"] for c in listed] == [b["id"], a["id"]]
        assert listed[0]["hostname"] == "b.com"
        assert (listed[0]["total"], listed[0]["working_count"], listed[0]["broken_count"]) == (9, 5, 4)

    def test_by_day(self, client):
        a = _crawl(client, "a.com")
        b = _crawl(client, "b.com")
        groups = client.get("/crawls/by-day").json()
        assert len(groups) == 1
        assert groups[0]["day"] == a["date"][:10]
        assert [c["id"] for c in groups[0]["crawls"]] == [b["id"], a["id"]]

    def test_unreadable_history_loads_empty(self, workspace):
        conn = get_connection()
        init_db(conn)
        SqliteBlobStorage(conn).write(
            "crawlHistory",
            '[{"id": "1", "url": "https://a.com", "date": "yesterday", "results": []}]',
        )
        conn.close()

        with TestClient(create_app()) as c:
            assert c.get("/crawls").json() == []
            resp = c.get("/crawls/by-day")
            assert resp.status_code == 200
            assert resp.json() == []


class TestGetCrawl:
    def test_returns_full_session(self, client):
        created = _crawl(client)
        resp = client.get(f"/crawls/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_404_for_unknown(self, client):
        assert client.get("/crawls/does-not-exist").status_code == 404


# ---------------------------------------------------------------------------
# GET /crawls/{id}/results
# ---------------------------------------------------------------------------

class TestCrawlResults:
    def test_broken_filter(self, client):
        created = _crawl(client)
        data = client.get(f"/crawls/{created['id']}/results", params={"filter": "broken"}).json()
        assert len(data["results"]) == 4
        assert all(not r["ok"] for r in data["results"])
        assert (data["total"], data["working_count"], data["broken_count"]) == (9, 5, 4)

    def test_search_composes_with_filter(self, client):
        created = _crawl(client)
        data = client.get(
            f"/crawls/{created['id']}/results",
            params={"filter": "ok", "search": "BLOG"},
        ).json()
        assert [r["url"] for r in data["results"]] == ["https://example.com/blog/post-1"]
        assert data["working_count"] == 5

    def test_invalid_filter_is_422(self, client):
        created = _crawl(client)
        resp = client.get(f"/crawls/{created['id']}/results", params={"filter": "nope"})
        assert resp.status_code == 422

    def test_404_for_unknown(self, client):
        assert client.get("/crawls/missing/results").status_code == 404


# ---------------------------------------------------------------------------
# Selection and /view
# ---------------------------------------------------------------------------

class TestSelectAndView:
    def test_initial_view_is_idle(self, client):
        view = client.get("/view").json()
        assert view == {
            "state": "idle",
            "selected_id": None,
            "view_reference": None,
            "last_error": None,
            "crawl": None,
            "results": None,
        }

    def test_select_existing(self, client):
        a = _crawl(client, "a.com")
        _crawl(client, "b.com")
        resp = client.post(f"/crawls/{a['id']}/select")
        assert resp.status_code == 200
        assert resp.json() == {
            "state": "viewing",
            "selected_id": a["id"],
            "view_reference": f"?id={a['id']}",
        }

    def test_select_unknown_is_404_and_keeps_selection(self, client):
        b = _crawl(client, "b.com")
        assert client.post("/crawls/missing/select").status_code == 404
        assert client.get("/view").json()["selected_id"] == b["id"]

    def test_deep_link(self, client):
        a = _crawl(client, "a.com")
        _crawl(client, "b.com")
        view = client.get("/view", params={"id": a["id"], "filter": "broken"}).json()
        assert view["selected_id"] == a["id"]
        assert view["crawl"]["url"] == "https://a.com"
        assert len(view["results"]["results"]) == 4
        assert view["results"]["working_count"] == 5

    def test_stale_deep_link_keeps_view(self, client):
        b = _crawl(client, "b.com")
        view = client.get("/view", params={"id": "stale"}).json()
        assert view["selected_id"] == b["id"]


# ---------------------------------------------------------------------------
# DELETE /crawls
# ---------------------------------------------------------------------------

class TestClearCrawls:
    def test_clears_history_and_view(self, client):
        _crawl(client)
        assert client.delete("/crawls").status_code == 204
        assert client.get("/crawls").json() == []
        assert client.get("/view").json()["state"] == "idle"
