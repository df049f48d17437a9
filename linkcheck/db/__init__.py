"""Database layer package.

Public re-exports so callers can write::

    from linkcheck.db import get_connection, init_db, SqliteBlobStorage
"""

from linkcheck.db.blobs import SqliteBlobStorage
from linkcheck.db.connection import get_connection
from linkcheck.db.migrations import init_db

__all__ = ["get_connection", "init_db", "SqliteBlobStorage"]
