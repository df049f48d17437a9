"""Crawl services.

``CrawlService`` is the contract the orchestrator depends on.  The only
implementation shipped is :class:`MockCrawlService`, which waits to emulate
crawl latency and then reports a fixed set of links relative to the root url.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from urllib.parse import urlparse

from linkcheck.config import settings
from linkcheck.crawler.models import LinkRecord
from linkcheck.errors import CrawlFailedError

log = logging.getLogger(__name__)


class CrawlService(ABC):
    """Anything that can turn a root url into a list of checked links."""

    @abstractmethod
    async def crawl(self, url: str) -> list[LinkRecord]:
        """Crawl *url* and return the discovered links in discovery order.

        Implementations signal failure by raising, preferably
        :class:`~linkcheck.errors.CrawlFailedError`; callers treat every
        exception the same way.
        """
        ...


def canned_results(url: str) -> list[LinkRecord]:
    """The fixed report returned for every crawl: 5 working and 4 broken links."""
    found = [
        (f"{url}/about", url, 200),
        (f"{url}/products", url, 200),
        (f"{url}/contact", url, 200),
        (f"{url}/blog/post-1", f"{url}/blog", 200),
        (f"{url}/blog/post-2", f"{url}/blog", 404),
        (f"{url}/old-page", f"{url}/about", 404),
        ("https://external-site.com/resource", f"{url}/resources", 500),
        ("https://partner-site.com", f"{url}/partners", 200),
        ("https://broken-external.com", f"{url}/partners", 404),
    ]
    return [LinkRecord.from_status(link, source, status) for link, source, status in found]


class MockCrawlService(CrawlService):
    """Pretends to crawl: sleeps for *delay* seconds, then returns :func:`canned_results`.

    A url without a host (``https://`` on its own) fails before the delay.
    """

    def __init__(self, delay: float | None = None) -> None:
        self._delay = settings.crawl_delay if delay is None else delay

    async def crawl(self, url: str) -> list[LinkRecord]:
        if not urlparse(url).hostname:
            raise CrawlFailedError(url, "no host to crawl")
        log.debug("Mock crawl of %s (delay %.1fs)", url, self._delay)
        if self._delay > 0:
            await asyncio.sleep(self._delay)
        return canned_results(url)
