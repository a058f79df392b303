"""
Browser tools and resources for the MCP server.

Tools (all backed by one shared browser session):
- browser_navigate, browser_screenshot
- browser_click, browser_fill, browser_select, browser_hover
- browser_evaluate

Resources:
- console://logs          - everything the page logged to its console
- screenshot://<name>     - one per stored screenshot, added on first capture

Failed operations are raised as ``ToolError`` and arrive as ``isError: true``
with the failure text (e.g. "Click failed: ...") as the only content. Refused
launch configurations and launch failures propagate as other exceptions;
FastMCP reports those as ``isError: true`` too, prefixed "Error calling tool".
"""

from __future__ import annotations

import logging
from typing import Any

from fastmcp import Context, FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.resources import FunctionResource
from mcp.types import ImageContent, TextContent

from ..artifacts import CONSOLE_LOGS_URI, ArtifactStore, screenshot_uri
from ..notifications import McpNotifier
from ..session import BrowserSession
from .definitions import TOOL_DEFINITIONS, TOOL_NAMES, decode_arguments
from .dispatch import ImageItem, ToolDispatcher, ToolResult

logger = logging.getLogger(__name__)

TOOL_PREFIX = "browser_"


def to_mcp_content(result: ToolResult) -> list[TextContent | ImageContent]:
    """Convert a successful ``ToolResult`` to MCP content; raise ``ToolError`` for errors."""
    if result.is_error:
        raise ToolError(result.first_text)
    content: list[TextContent | ImageContent] = []
    for item in result.content:
        if isinstance(item, ImageItem):
            content.append(ImageContent(type="image", data=item.data, mimeType=item.mime_type))
        else:
            content.append(TextContent(type="text", text=item.text))
    return content


def register_resources(mcp: FastMCP, store: ArtifactStore) -> None:
    """Register the console log resource and keep screenshot resources in sync."""

    @mcp.resource(CONSOLE_LOGS_URI, name="Browser console logs", mime_type="text/plain")
    def console_logs() -> str:
        return store.console_text()

    def add_screenshot_resource(name: str) -> None:
        uri = screenshot_uri(name)

        def read_screenshot() -> bytes:
            return store.read_resource(uri)

        try:
            # FastMCP.add_resource would queue a second list_changed notification.
            mcp._resource_manager.add_resource(
                FunctionResource.from_function(
                    fn=read_screenshot,
                    uri=uri,
                    name=f"Screenshot: {name}",
                    mime_type="image/png",
                )
            )
        except Exception as e:
            # The screenshot itself stays stored; only listing is affected.
            logger.warning("Could not register resource for screenshot %r: %s", name, e)

    for name in store.screenshot_names():
        add_screenshot_resource(name)
    store.on_new_screenshot = add_screenshot_resource


def register_tools(mcp: FastMCP, session: BrowserSession) -> ToolDispatcher:
    """
    Register the browser tools and resources with the MCP server.

    Args:
        mcp: Server to register with
        session: Browser session every tool call runs against

    Returns:
        The dispatcher the registered tools delegate to
    """
    dispatcher = ToolDispatcher(session)
    register_resources(mcp, session.store)

    async def call(name: str, ctx: Context | None, arguments: dict[str, Any]) -> list:
        if ctx is not None and isinstance(session.notifier, McpNotifier):
            session.notifier.bind(ctx.session)
        bundle = {key: value for key, value in arguments.items() if value is not None}
        result = await dispatcher.dispatch(name, bundle)
        if result.is_error:
            logger.warning(f"{TOOL_PREFIX}{name} failed: {result.first_text}")
        return to_mcp_content(result)

    def describe(name: str) -> dict[str, str]:
        return {"name": f"{TOOL_PREFIX}{name}", "description": TOOL_DEFINITIONS[name].description}

    @mcp.tool(**describe("navigate"))
    async def browser_navigate(
        url: str,
        ctx: Context,
        launchOptions: dict[str, Any] | None = None,  # noqa: N803
        allowDangerous: bool = False,  # noqa: N803
    ):
        """
        Navigate the shared page to a URL.

        Args:
            url: URL to navigate to
            launchOptions: Browser launch options; the browser restarts when these change
            allowDangerous: Allow launch args that weaken browser security (default: False)

        Returns:
            Text content confirming the navigation
        """
        return await call(
            "navigate",
            ctx,
            {"url": url, "launchOptions": launchOptions, "allowDangerous": allowDangerous},
        )

    @mcp.tool(**describe("screenshot"))
    async def browser_screenshot(
        name: str,
        ctx: Context,
        selector: str | None = None,
        width: int = 800,
        height: int = 600,
        encoded: bool = False,
    ):
        """
        Take a screenshot of the page or of one element.

        Args:
            name: Name to store the screenshot under (screenshot://<name>)
            selector: CSS selector of the element to capture (optional)
            width: Viewport width in pixels (default: 800)
            height: Viewport height in pixels (default: 600)
            encoded: Return a base64 data URI text item instead of an image (default: False)

        Returns:
            A description plus the image (or data URI)
        """
        return await call(
            "screenshot",
            ctx,
            {
                "name": name,
                "selector": selector,
                "width": width,
                "height": height,
                "encoded": encoded,
            },
        )

    @mcp.tool(**describe("click"))
    async def browser_click(selector: str, ctx: Context):
        """Click the element matching a CSS selector."""
        return await call("click", ctx, {"selector": selector})

    @mcp.tool(**describe("fill"))
    async def browser_fill(selector: str, value: str, ctx: Context):
        """Fill an input field matching a CSS selector."""
        return await call("fill", ctx, {"selector": selector, "value": value})

    @mcp.tool(**describe("select"))
    async def browser_select(selector: str, value: str, ctx: Context):
        """Choose an option of a <select> element."""
        return await call("select", ctx, {"selector": selector, "value": value})

    @mcp.tool(**describe("hover"))
    async def browser_hover(selector: str, ctx: Context):
        """Hover the element matching a CSS selector."""
        return await call("hover", ctx, {"selector": selector})

    @mcp.tool(**describe("evaluate"))
    async def browser_evaluate(script: str, ctx: Context):
        """
        Run JavaScript in the page.

        Console output produced by the script is captured and returned with
        the JSON-serialised result.
        """
        return await call("evaluate", ctx, {"script": script})

    return dispatcher


__all__ = [
    "TOOL_DEFINITIONS",
    "TOOL_NAMES",
    "ToolDispatcher",
    "ToolResult",
    "decode_arguments",
    "register_resources",
    "register_tools",
    "to_mcp_content",
]
