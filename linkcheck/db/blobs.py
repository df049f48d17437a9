"""SQLite-backed implementation of :class:`~linkcheck.history.storage.BlobStorage`."""

from __future__ import annotations

import logging
import sqlite3
from time import time
from typing import Optional

from linkcheck.history.storage import BlobStorage

log = logging.getLogger(__name__)


class SqliteBlobStorage(BlobStorage):
    """Stores each blob as one row of the ``blobs`` table.

    Receives an already-open connection with the schema initialised; it does
    not own the connection's lifecycle.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def read(self, name: str) -> Optional[str]:
        row = self._conn.execute(
            "SELECT value FROM blobs WHERE name = ?", (name,)
        ).fetchone()
        return row["value"] if row else None

    def write(self, name: str, value: str) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO blobs (name, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (name) DO UPDATE SET
                    value      = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (name, value, int(time())),
            )
        log.debug("Wrote blob %r (%d bytes)", name, len(value))
