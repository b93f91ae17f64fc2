"""Output and formatting helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .orchestrator import CrawlSummary


def format_records(rows: List[Dict[str, Any]], jsonl: bool = False) -> str:
    """Render dataset rows as a JSON array or as JSON Lines."""
    if jsonl:
        return "".join(json.dumps(row, ensure_ascii=False) + "\n" for row in rows)
    return json.dumps(rows, indent=2, ensure_ascii=False) + "\n"


def format_summary(summary: CrawlSummary) -> str:
    """One-paragraph human summary for the terminal."""
    lines = [
        f"Playlists saved: {summary.total_playlists}",
        f"With emails:     {summary.playlists_with_emails}",
        f"Visited:         {summary.playlists_visited}",
        f"Failed requests: {len(summary.failed_requests)}",
    ]
    for failure in summary.failed_requests:
        lines.append(f"  - {failure['url']}: {failure['error']}")
    return "\n".join(lines)


def write_records(
    summary: CrawlSummary,
    output: Optional[str],
    jsonl: bool = False,
) -> None:
    """Write records to *output*, or to stdout when no path is given."""
    text = format_records([record.to_dict() for record in summary.records], jsonl=jsonl)
    if output is None:
        print(text, end="")
        return

    path = Path(output).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logging.info("Wrote %d record(s) to %s", summary.total_playlists, path)
