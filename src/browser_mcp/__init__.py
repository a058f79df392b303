"""
Browser MCP - browser automation tools behind the Model Context Protocol.

Provides a single managed Chromium session and exposes:
- Navigation and screenshots
- Element interaction (click, fill, select, hover)
- JavaScript evaluation with console capture
- Console logs and screenshots as readable resources

Uses Playwright for browser automation.

Example usage:
    from browser_mcp import create_server

    mcp = create_server()
    mcp.run(transport="stdio")
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastmcp import FastMCP

from .artifacts import ArtifactStore, ConsoleLogEntry, ResourceNotFoundError
from .config import SERVER_NAME, ServerConfig
from .launch_config import DangerousConfigurationError, check_dangerous, deep_merge
from .notifications import McpNotifier
from .session import BrowserLaunchError, BrowserSession
from .tools import ToolDispatcher, ToolResult, register_tools

try:
    __version__ = version("browser-mcp")
except PackageNotFoundError:
    __version__ = "0.0.0"


def create_server(session: BrowserSession | None = None) -> FastMCP:
    """
    Build a FastMCP server wired to one browser session.

    Args:
        session: Session to serve (default: a new session with an MCP notifier)

    Returns:
        The configured server; the browser is closed when the server shuts down
    """
    if session is None:
        session = BrowserSession(notifier=McpNotifier())

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        try:
            yield {}
        finally:
            await session.close()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
    register_tools(mcp, session)
    return mcp


__all__ = [
    # Server construction
    "create_server",
    "register_tools",
    # Session management
    "BrowserSession",
    "ToolDispatcher",
    "ToolResult",
    "ArtifactStore",
    "ConsoleLogEntry",
    "ServerConfig",
    # Launch configuration
    "deep_merge",
    "check_dangerous",
    # Errors
    "DangerousConfigurationError",
    "BrowserLaunchError",
    "ResourceNotFoundError",
]
