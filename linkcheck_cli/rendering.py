"""Plain-text rendering of crawls for the terminal."""

from __future__ import annotations

from linkcheck.crawler.models import CrawlSession, LinkRecord
from linkcheck.projection import ResultView


def render_counts(view: ResultView) -> str:
    return (
        f"Total: {view.total}   Working: {view.working_count}   "
        f"Broken: {view.broken_count}"
    )


def _status_cell(record: LinkRecord) -> str:
    mark = "✓" if record.ok else "✗"
    return f"{mark} {record.status}"


def render_results(view: ResultView) -> str:
    """Render the filtered results as a three-column table."""
    if not view.results:
        return "No results found"

    rows = [("Status", "Link URL", "Found On")]
    rows += [(_status_cell(r), r.url, r.source_url) for r in view.results]
    widths = [max(len(row[i]) for row in rows) for i in range(2)]

    lines = []
    for status, url, source in rows:
        lines.append(f"{status:<{widths[0]}}  {url:<{widths[1]}}  {source}")
    lines.insert(1, "-" * len(lines[0]))
    return "\n".join(lines)


def render_header(session: CrawlSession) -> str:
    return f"{session.url}  [{session.id}]\nCrawled on {session.date}"


def render_history(groups: list[tuple[str, list[CrawlSession]]]) -> str:
    """Render history grouped by day, the way the sidebar lists it."""
    if not groups:
        return "No crawl history yet"

    lines: list[str] = []
    for day, sessions in groups:
        lines.append(day)
        for s in sessions:
            lines.append(f"  {s.id}  {s.hostname}  ({s.broken_count}/{s.total} broken)")
    return "\n".join(lines)
