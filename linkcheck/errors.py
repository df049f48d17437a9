"""Exception types raised by the link checker."""

from __future__ import annotations


class LinkCheckError(Exception):
    """Base class for every error raised by this package."""


class CrawlInProgressError(LinkCheckError):
    """Raised when a crawl is submitted while another one is still running."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"A crawl is already running; rejected {url!r}")


class CrawlFailedError(LinkCheckError):
    """Raised by a crawl service when it cannot produce results for *url*."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        self.reason = reason
        message = f"Crawl of {url!r} failed"
        super().__init__(f"{message}: {reason}" if reason else message)
