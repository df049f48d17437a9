"""Data models for crawl results.

These are plain frozen dataclasses.  The persisted blob and the HTTP layer
serialise to and from these types with the field names a browser client
expects (``sourceUrl`` rather than ``source_url``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from urllib.parse import urlparse


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def is_healthy(status: int) -> bool:
    """Return ``True`` if *status* is in the success range."""
    return 200 <= status < 300


@dataclass(frozen=True)
class LinkRecord:
    """One discovered link and the page it was found on."""

    url: str
    source_url: str
    status: int
    ok: bool

    @classmethod
    def from_status(cls, url: str, source_url: str, status: int) -> LinkRecord:
        """Build a record whose ``ok`` flag follows :func:`is_healthy`."""
        return cls(url=url, source_url=source_url, status=status, ok=is_healthy(status))

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "sourceUrl": self.source_url,
            "status": self.status,
            "ok": self.ok,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkRecord:
        if not isinstance(data["url"], str) or not isinstance(data["sourceUrl"], str):
            raise TypeError("link url and sourceUrl must be strings")
        return cls(
            url=data["url"],
            source_url=data["sourceUrl"],
            status=int(data["status"]),
            ok=bool(data["ok"]),
        )


@dataclass(frozen=True)
class CrawlSession:
    """A completed crawl: the root url, when it finished, and what it found.

    ``results`` keep the order in which the crawl service reported them.
    """

    id: str
    url: str
    date: str
    results: tuple[LinkRecord, ...] = field(default_factory=tuple)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    @property
    def hostname(self) -> str:
        return urlparse(self.url).hostname or self.url

    @property
    def day(self) -> str:
        """Calendar day (``YYYY-MM-DD``) the crawl completed on."""
        return _parse_date(self.date).date().isoformat()

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def working_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def broken_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "date": self.date,
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CrawlSession:
        """Rebuild a session from its persisted form.

        Raises:
            TypeError: If a field has the wrong type.
            ValueError: If ``date`` is not an ISO-8601 timestamp.
        """
        session_id, url, date = data["id"], data["url"], data["date"]
        if isinstance(session_id, bool) or not isinstance(session_id, (str, int)):
            raise TypeError(f"crawl id must be a string, got {session_id!r}")
        if not isinstance(url, str) or not isinstance(date, str):
            raise TypeError("crawl url and date must be strings")
        _parse_date(date)
        return cls(
            id=str(session_id),
            url=url,
            date=date,
            results=tuple(LinkRecord.from_dict(r) for r in data.get("results", [])),
        )
