"""Filter and search over a crawl's results.

Pure functions only: the same inputs always give the same view, so callers
recompute on every change instead of caching.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from linkcheck.crawler.models import LinkRecord


class ResultFilter(str, Enum):
    ALL = "all"
    BROKEN = "broken"
    OK = "ok"


@dataclass(frozen=True)
class ResultView:
    """The visible subset of a crawl plus counts over the *whole* crawl."""

    results: tuple[LinkRecord, ...]
    total: int
    working_count: int
    broken_count: int


def _passes_filter(record: LinkRecord, mode: ResultFilter) -> bool:
    if mode is ResultFilter.BROKEN:
        return not record.ok
    if mode is ResultFilter.OK:
        return record.ok
    return True


def _matches_search(record: LinkRecord, term: str) -> bool:
    return term in record.url.lower() or term in record.source_url.lower()


def project(
    results: Iterable[LinkRecord],
    filter: Union[ResultFilter, str] = ResultFilter.ALL,
    search_term: str = "",
) -> ResultView:
    """Return the records that pass both the status filter and the search.

    A record is kept when it matches *filter* **and**, if *search_term* is
    non-empty, its ``url`` or ``source_url`` contains the term
    (case-insensitive).  Original order is preserved.

    Raises:
        ValueError: If *filter* is not one of ``all``, ``broken``, ``ok``.
    """
    mode = ResultFilter(filter)
    records = tuple(results)
    term = search_term.lower()

    visible = tuple(
        r for r in records
        if _passes_filter(r, mode) and (not term or _matches_search(r, term))
    )
    working = sum(1 for r in records if r.ok)

    return ResultView(
        results=visible,
        total=len(records),
        working_count=working,
        broken_count=len(records) - working,
    )
