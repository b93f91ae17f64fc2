"""MCP Server for the playlist email crawler.

Provides one tool:
- scrape_playlist_emails: Search playlists and collect curator contact emails

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m playlist_crawler.mcp_server

    # HTTP (for remote access)
    python -m playlist_crawler.mcp_server --transport http --port 8000

Environment Variables:
    PLAYLIST_CRAWLER_PROXY_URL: Optional proxy server for the browser
    PLAYLIST_CRAWLER_HEADLESS: Set to 0 to show the browser window
    PLAYLIST_CRAWLER_CONCURRENCY: Requests processed in parallel
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .config import DEFAULT_MAX_PLAYLISTS, InvalidInputError, ScraperInput, apply_env_defaults

LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Playlist Email Crawler",
    instructions="""
    Finds contact emails that playlist curators publish in their playlist
    descriptions.

    Tool:
       - scrape_playlist_emails: search playlists for a query, visit each
         playlist page, and return one record per playlist with an email

    Records carry url, playlistId, title, description, owner, imageUrl,
    followersText, trackCount, emails, hasEmail, scrapedAt and, when the
    page shows a like count, followerCount.
    """,
)


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@mcp.tool
async def scrape_playlist_emails(
    search_query: str,
    max_playlists: int = DEFAULT_MAX_PLAYLISTS,
    debug_mode: bool = False,
    email_regex: Optional[str] = None,
) -> str:
    """
    Search playlists and collect the contact emails in their descriptions.

    Args:
        search_query: Search term typed into the playlist search.
        max_playlists: Maximum playlists taken from a results page (default: 50).
            At most twice this many pages are requested in total.
        debug_mode: Return every visited playlist, even without emails.
        email_regex: Optional custom email pattern (plain or /pattern/flags).

    Returns:
        JSON with the scraped records and a run summary, or an error object.
    """
    from . import scrape_playlists_async

    scraper_input = apply_env_defaults(
        ScraperInput(
            search_query=search_query,
            max_playlists=max_playlists,
            debug_mode=debug_mode,
            email_regex=email_regex,
        )
    )
    LOGGER.info("MCP scrape requested for '%s'", search_query)

    try:
        summary = await scrape_playlists_async(scraper_input)
    except InvalidInputError as exc:
        LOGGER.error("Invalid input: %s", exc)
        return json.dumps({"error": str(exc), "query": search_query}, ensure_ascii=False)

    return json.dumps(
        {
            "scraped_at": _format_timestamp(),
            "query": search_query,
            "records": [record.to_dict() for record in summary.records],
            "summary": summary.to_dict(),
        },
        indent=2,
        ensure_ascii=False,
    )


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the playlist email crawler MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # STDIO transport (default)
    python -m playlist_crawler.mcp_server

    # HTTP transport (for remote access)
    python -m playlist_crawler.mcp_server --transport http --port 8000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    LOGGER.info("Proxy: %s", "Enabled" if os.getenv("PLAYLIST_CRAWLER_PROXY_URL") else "Disabled")

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
