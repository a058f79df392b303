"""
Tool dispatch.

Maps a tool name and its argument bundle onto a browser operation and
normalises the outcome into a ``ToolResult``.

Public API:
    ToolDispatcher(session).dispatch(name, arguments) -> ToolResult

Only two failures escape ``dispatch``: ``DangerousConfigurationError`` and
``BrowserLaunchError``, both raised while preparing the page. Everything else
(unknown tool, bad arguments, selector misses, script errors) comes back as a
result with ``is_error=True`` and a human-readable first text item.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field

from playwright.async_api import Page

from ..artifacts import screenshot_uri
from ..session import BrowserSession
from .definitions import (
    EvaluateArgs,
    InvalidArgumentsError,
    NavigateArgs,
    ScreenshotArgs,
    SelectorArgs,
    SelectorValueArgs,
    decode_arguments,
)

logger = logging.getLogger(__name__)

# Wraps console methods so script output is collected apart from the page's
# own console stream. Calls still reach the original console.
CONSOLE_CAPTURE_SHIM = """() => {
    window.mcpHelper = { logs: [], originalConsole: { ...console } };
    ['log', 'info', 'warn', 'error'].forEach((method) => {
        console[method] = (...args) => {
            window.mcpHelper.logs.push(`[${method}] ${args.join(' ')}`);
            window.mcpHelper.originalConsole[method](...args);
        };
    });
}"""

CONSOLE_COLLECT = """() => {
    const helper = window.mcpHelper;
    if (!helper) return [];
    Object.assign(console, helper.originalConsole);
    delete window.mcpHelper;
    return helper.logs;
}"""


@dataclass(frozen=True)
class TextItem:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class ImageItem:
    data: str
    mime_type: str = "image/png"
    type: str = "image"


@dataclass
class ToolResult:
    content: list[TextItem | ImageItem] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def text(cls, message: str) -> ToolResult:
        return cls(content=[TextItem(message)])

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(content=[TextItem(message)], is_error=True)

    @property
    def first_text(self) -> str:
        for item in self.content:
            if isinstance(item, TextItem):
                return item.text
        return ""


class ToolDispatcher:
    """Routes tool calls to the page held by a ``BrowserSession``."""

    def __init__(self, session: BrowserSession):
        self.session = session
        self._handlers = {
            "navigate": self._navigate,
            "screenshot": self._screenshot,
            "click": self._click,
            "fill": self._fill,
            "select": self._select,
            "hover": self._hover,
            "evaluate": self._evaluate,
        }

    async def dispatch(self, name: str, arguments: dict | None = None) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            return ToolResult.error(f"Unknown tool: {name}")
        try:
            args = decode_arguments(name, arguments)
        except InvalidArgumentsError as e:
            return ToolResult.error(str(e))

        launch_options = args.launch_options if isinstance(args, NavigateArgs) else None
        allow_dangerous = args.allow_dangerous if isinstance(args, NavigateArgs) else False

        async with self.session.lock:
            page = await self.session.ensure_page(launch_options, allow_dangerous)
            return await handler(page, args)

    # ── Handlers ──────────────────────────────────────────────────────────

    async def _navigate(self, page: Page, args: NavigateArgs) -> ToolResult:
        try:
            await page.goto(args.url)
        except Exception as e:
            logger.warning("navigate to %s failed: %s", args.url, e)
            return ToolResult.error(f"Navigation failed: {e}")
        return ToolResult.text(f"Navigated to {args.url}")

    async def _screenshot(self, page: Page, args: ScreenshotArgs) -> ToolResult:
        try:
            await page.set_viewport_size({"width": args.width, "height": args.height})
            if args.selector:
                element = await page.query_selector(args.selector)
                if element is None:
                    return ToolResult.error(
                        f"Screenshot failed: element not found: {args.selector}"
                    )
                raw = await element.screenshot(type="png")
            else:
                raw = await page.screenshot(type="png")
        except Exception as e:
            logger.warning("screenshot %r failed: %s", args.name, e)
            return ToolResult.error(f"Screenshot failed: {e}")

        if not raw:
            return ToolResult.error("Screenshot failed")

        data = base64.b64encode(raw).decode()
        self.session.store.set_screenshot(args.name, data)
        await self.session.notifier.resource_updated(screenshot_uri(args.name))
        await self.session.notifier.resource_list_changed()

        image = TextItem(f"data:image/png;base64,{data}") if args.encoded else ImageItem(data)
        return ToolResult(
            content=[
                TextItem(f"Screenshot '{args.name}' taken at {args.width}x{args.height}"),
                image,
            ]
        )

    async def _click(self, page: Page, args: SelectorArgs) -> ToolResult:
        try:
            await page.click(args.selector)
        except Exception as e:
            return ToolResult.error(f"Click failed: {e}")
        return ToolResult.text(f"Clicked {args.selector}")

    async def _fill(self, page: Page, args: SelectorValueArgs) -> ToolResult:
        try:
            await page.wait_for_selector(args.selector)
            await page.fill(args.selector, args.value)
        except Exception as e:
            return ToolResult.error(f"Fill failed: {e}")
        return ToolResult.text(f"Filled {args.selector} with: {args.value}")

    async def _select(self, page: Page, args: SelectorValueArgs) -> ToolResult:
        try:
            await page.wait_for_selector(args.selector)
            await page.select_option(args.selector, args.value)
        except Exception as e:
            return ToolResult.error(f"Select failed: {e}")
        return ToolResult.text(f"Selected {args.selector} with: {args.value}")

    async def _hover(self, page: Page, args: SelectorArgs) -> ToolResult:
        try:
            await page.wait_for_selector(args.selector)
            await page.hover(args.selector)
        except Exception as e:
            return ToolResult.error(f"Hover failed: {e}")
        return ToolResult.text(f"Hovered {args.selector}")

    async def _evaluate(self, page: Page, args: EvaluateArgs) -> ToolResult:
        try:
            await page.evaluate(CONSOLE_CAPTURE_SHIM)
            try:
                result = await page.evaluate(args.script)
            finally:
                logs = await page.evaluate(CONSOLE_COLLECT)
            serialized = json.dumps(result, indent=2)
        except Exception as e:
            logger.warning("evaluate failed: %s", e)
            return ToolResult.error(f"Script execution failed: {e}")

        return ToolResult.text(
            f"Execution result:\n{serialized}\n\nConsole output:\n" + "\n".join(logs or [])
        )
