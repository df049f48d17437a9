"""Crawler package: result models and crawl services."""

from linkcheck.crawler.models import CrawlSession, LinkRecord, is_healthy
from linkcheck.crawler.service import CrawlService, MockCrawlService, canned_results

__all__ = [
    "CrawlSession",
    "LinkRecord",
    "is_healthy",
    "CrawlService",
    "MockCrawlService",
    "canned_results",
]
