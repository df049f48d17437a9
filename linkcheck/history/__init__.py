"""Crawl history package: the session store and its persistence port."""

from linkcheck.history.storage import BlobStorage, MemoryBlobStorage
from linkcheck.history.store import CrawlHistoryStore

__all__ = ["BlobStorage", "MemoryBlobStorage", "CrawlHistoryStore"]
