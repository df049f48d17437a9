"""Persistence port for the crawl history.

The history store only needs to read and overwrite one named text blob.  The
SQLite implementation lives in :mod:`linkcheck.db.blobs`; the in-memory one
below is used by tests and anywhere a throwaway history is enough.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class BlobStorage(ABC):
    """Contract for a key → text store holding whole serialised documents."""

    @abstractmethod
    def read(self, name: str) -> Optional[str]:
        """Return the blob stored under *name*, or ``None`` if absent."""
        ...

    @abstractmethod
    def write(self, name: str, value: str) -> None:
        """Overwrite the blob stored under *name*."""
        ...


class MemoryBlobStorage(BlobStorage):
    """Dict-backed storage.  Counts writes so tests can assert write-through."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.blobs: dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, name: str) -> Optional[str]:
        return self.blobs.get(name)

    def write(self, name: str, value: str) -> None:
        self.blobs[name] = value
        self.writes += 1
