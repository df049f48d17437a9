"""Broken link checker: crawl a site, keep a history, filter the results."""

__version__ = "0.1.0"
