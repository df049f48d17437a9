"""Crawl orchestration: turns raw user input into a recorded crawl session.

The orchestrator owns the view state machine::

    Idle ──submit──▶ Crawling ──success──▶ Viewing(new id)
                        │
                        └──failure──▶ Viewing(selected id), or Idle

    Idle / Viewing ──select(id)──▶ Viewing(id)    (id must exist)

Only one crawl may be in flight; a second submission is rejected rather than
queued.  Everything runs on one event loop, so the in-flight check happens
before the first ``await`` and needs no lock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from urllib.parse import parse_qs

from linkcheck.crawler.models import CrawlSession
from linkcheck.crawler.service import CrawlService
from linkcheck.errors import CrawlInProgressError
from linkcheck.history.store import CrawlHistoryStore

log = logging.getLogger(__name__)

_SCHEMES = ("http://", "https://")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Phase(str, Enum):
    IDLE = "idle"
    CRAWLING = "crawling"
    VIEWING = "viewing"


@dataclass(frozen=True)
class ViewState:
    phase: Phase
    session_id: Optional[str] = None


IDLE = ViewState(Phase.IDLE)


def normalize_url(url: str) -> str:
    """Prefix ``https://`` unless *url* already starts with an http(s) scheme."""
    if url.startswith(_SCHEMES):
        return url
    return "https://" + url


def view_reference(session_id: str) -> str:
    """The query string a navigable location carries for *session_id*."""
    return f"?id={session_id}"


def parse_reference(reference: str) -> Optional[str]:
    """Extract the session id from ``?id=<id>`` (or a bare id)."""
    if not reference:
        return None
    if "=" not in reference:
        return reference
    values = parse_qs(reference.lstrip("?")).get("id")
    return values[0] if values else None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CrawlOrchestrator:
    """Runs crawls through *service* and records them in *store*.

    Args:
        service: Produces link records for a root url.
        store: History the finished sessions are appended to.  It should
            already be loaded.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        service: CrawlService,
        store: CrawlHistoryStore,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._service = service
        self._store = store
        self._clock = clock
        self._last_id = 0
        self.last_error: Optional[str] = None

        self._state = self._resting_state()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def store(self) -> CrawlHistoryStore:
        return self._store

    @property
    def is_crawling(self) -> bool:
        return self._state.phase is Phase.CRAWLING

    @property
    def current(self) -> Optional[CrawlSession]:
        """The session on screen, if any."""
        if self._state.phase is not Phase.VIEWING or self._state.session_id is None:
            return None
        return self._store.get(self._state.session_id)

    @property
    def view_reference(self) -> Optional[str]:
        session = self.current
        return view_reference(session.id) if session else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    async def submit(self, url: str) -> Optional[CrawlSession]:
        """Crawl *url* and record the result.

        Returns the new session, or ``None`` when *url* is empty or the crawl
        failed.  A failure is logged and kept in :attr:`last_error`; history
        and selection are left as they were and the previously selected
        crawl is shown again.

        Raises:
            CrawlInProgressError: If another crawl has not finished yet.
        """
        if not url:
            return None
        if self.is_crawling:
            raise CrawlInProgressError(url)

        normalized = normalize_url(url)
        self._state = ViewState(Phase.CRAWLING)
        self.last_error = None
        log.info("Crawling %s", normalized)

        try:
            results = await self._service.crawl(normalized)
        except Exception as exc:
            log.error("Error crawling website %s: %s", normalized, exc, exc_info=True)
            self.last_error = str(exc) or type(exc).__name__
            self._state = self._resting_state()
            return None

        session = CrawlSession(
            id=self._next_id(),
            url=normalized,
            date=self._clock().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            results=tuple(results),
        )
        try:
            self._store.append(session)
        except Exception:
            self._state = self._resting_state()
            raise

        self._store.select(session.id)
        self._state = ViewState(Phase.VIEWING, session.id)
        log.info(
            "Crawl %s done | %s | %d links (%d broken)",
            session.id, normalized, session.total, session.broken_count,
        )
        return session

    def select(self, session_id: str) -> bool:
        """Show a past crawl.  Unknown ids are ignored; returns whether found.

        While a crawl is running only the stored selection changes; the
        running crawl takes over the view when it finishes.
        """
        if not self._store.select(session_id):
            return False
        if not self.is_crawling:
            self._state = ViewState(Phase.VIEWING, session_id)
        return True

    def open(self, reference: str) -> bool:
        """Follow a deep link such as ``?id=1717171717171``."""
        session_id = parse_reference(reference)
        return self.select(session_id) if session_id else False

    def clear(self) -> None:
        """Drop the whole history.  A running crawl still records its result."""
        self._store.clear()
        if not self.is_crawling:
            self._state = IDLE
        log.info("Crawl history cleared")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _next_id(self) -> str:
        """Millisecond timestamp, bumped so ids keep increasing."""
        candidate = (self._clock() - _EPOCH) // timedelta(milliseconds=1)
        newest = self._store.sessions[0].id if len(self._store) else ""
        floor = max(self._last_id, int(newest) if newest.isdigit() else 0)
        if candidate <= floor:
            candidate = floor + 1
        self._last_id = candidate
        return str(candidate)

    def _resting_state(self) -> ViewState:
        """Viewing the stored selection, or Idle when nothing is selected."""
        selected = self._store.selected_id
        return ViewState(Phase.VIEWING, selected) if selected else IDLE
