"""Crawl history: every completed crawl, newest first, and which one is on screen.

The whole history is serialised as a single JSON list and written back to the
injected :class:`~linkcheck.history.storage.BlobStorage` after every mutation
(write-through).  Missing or unreadable data loads as an empty history.

Blob shape::

    [
        {
            "id": "1717171717171",
            "url": "https://example.com",
            "date": "2024-05-31T16:08:37.171Z",
            "results": [
                {"url": "...", "sourceUrl": "...", "status": 200, "ok": true}
            ]
        }
    ]
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from linkcheck.config import settings
from linkcheck.crawler.models import CrawlSession
from linkcheck.history.storage import BlobStorage

log = logging.getLogger(__name__)


class CrawlHistoryStore:
    """Ordered crawl history plus the current selection.

    Args:
        storage: Where the serialised history is read from and written to.
        key: Name of the blob.  Defaults to ``settings.history_key``.
        max_history: Keep at most this many sessions, evicting the oldest
            first.  ``0`` (the default from settings) means unbounded.
    """

    def __init__(
        self,
        storage: BlobStorage,
        key: Optional[str] = None,
        max_history: Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._key = key or settings.history_key
        self._max_history = settings.max_history if max_history is None else max_history
        self._sessions: list[CrawlSession] = []
        self._selected_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def sessions(self) -> tuple[CrawlSession, ...]:
        return tuple(self._sessions)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[CrawlSession]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def get(self, session_id: str) -> Optional[CrawlSession]:
        """Return the session with *session_id*, or ``None``."""
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def __len__(self) -> int:
        return len(self._sessions)

    def group_by_day(self) -> list[tuple[str, list[CrawlSession]]]:
        """Group sessions by the day they completed on, keeping history order."""
        groups: dict[str, list[CrawlSession]] = {}
        for session in self._sessions:
            groups.setdefault(session.day, []).append(session)
        return list(groups.items())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def load(self, reference_id: Optional[str] = None) -> None:
        """Replace in-memory state with the persisted history.

        If *reference_id* names a loaded session it becomes selected;
        otherwise nothing is selected.
        """
        self._sessions = self._read()
        self._selected_id = None
        if reference_id is not None:
            self.select(reference_id)
        log.info(
            "Loaded %d crawl(s) from %r | selected=%s",
            len(self._sessions), self._key, self._selected_id,
        )

    def append(self, session: CrawlSession) -> None:
        """Put *session* at the front of the history and persist.

        Raises:
            ValueError: If a session with the same id is already recorded.
        """
        if self.get(session.id) is not None:
            raise ValueError(f"Duplicate crawl id: {session.id!r}")

        previous = (list(self._sessions), self._selected_id)
        self._sessions.insert(0, session)
        self._evict()
        try:
            self._save()
        except Exception:
            # roll back so memory matches storage
            self._sessions, self._selected_id = previous
            raise

    def select(self, session_id: str) -> bool:
        """Select *session_id* if it is in the history.

        Unknown ids leave the current selection untouched.  Returns whether the
        id was found.
        """
        if self.get(session_id) is None:
            log.debug("Ignoring selection of unknown crawl %r", session_id)
            return False
        self._selected_id = session_id
        return True

    def clear(self) -> None:
        """Forget every session and persist the empty history."""
        self._sessions = []
        self._selected_id = None
        self._save()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _evict(self) -> None:
        if self._max_history <= 0 or len(self._sessions) <= self._max_history:
            return
        evicted = self._sessions[self._max_history:]
        self._sessions = self._sessions[: self._max_history]
        if any(s.id == self._selected_id for s in evicted):
            self._selected_id = None
        log.info("Evicted %d oldest crawl(s) (max_history=%d)", len(evicted), self._max_history)

    def _read(self) -> list[CrawlSession]:
        raw = self._storage.read(self._key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [CrawlSession.from_dict(item) for item in data]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
            log.warning("Discarding unreadable crawl history %r: %s", self._key, exc)
            return []

    def _save(self) -> None:
        payload = json.dumps([s.to_dict() for s in self._sessions])
        self._storage.write(self._key, payload)
        log.debug("Persisted %d crawl(s) to %r", len(self._sessions), self._key)
