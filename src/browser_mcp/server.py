#!/usr/bin/env python3
"""
Browser MCP Server

FastMCP server exposing 7 browser tools (browser_navigate, browser_screenshot,
browser_click, browser_fill, browser_select, browser_hover, browser_evaluate)
plus console log and screenshot resources.

Usage:
    # Run with STDIO transport (for agent integration)
    browser-mcp --stdio

    # Run with HTTP transport
    browser-mcp --port 4004

Environment:
    BROWSER_LAUNCH_OPTIONS  JSON launch options merged under every call's options
    ALLOW_DANGEROUS         "true" permits security-weakening launch args
    DOCKER_CONTAINER        non-empty selects headless container defaults
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger("browser_mcp")


def setup_logger() -> None:
    """Configure logger for the browser server."""
    if not logger.handlers:
        stream = sys.stderr if "--stdio" in sys.argv else sys.stdout
        handler = logging.StreamHandler(stream)
        formatter = logging.Formatter("[BROWSER] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)


def _redirect_banner_to_stderr() -> None:
    """Keep the FastMCP banner off stdout, which carries the STDIO protocol."""
    import rich.console

    original_init = rich.console.Console.__init__

    def patched_init(self, *args, **kwargs):
        kwargs["file"] = sys.stderr
        original_init(self, *args, **kwargs)

    rich.console.Console.__init__ = patched_init


def main() -> None:
    """Entry point for the Browser MCP server."""
    from .config import DEFAULT_HOST, get_default_port

    parser = argparse.ArgumentParser(description="Browser MCP Server")
    parser.add_argument(
        "--port",
        type=int,
        default=get_default_port(),
        help="HTTP server port (default: $BROWSER_MCP_PORT or 4004)",
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"HTTP server host (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Use STDIO transport instead of HTTP",
    )
    args = parser.parse_args()

    setup_logger()
    if args.stdio:
        _redirect_banner_to_stderr()

    from . import create_server

    mcp = create_server()

    if args.stdio:
        mcp.run(transport="stdio")
    else:
        logger.info(f"Starting Browser MCP server on {args.host}:{args.port}")
        mcp.run(transport="http", host=args.host, port=args.port)
    logger.info("Browser MCP server closed")


if __name__ == "__main__":
    main()
