"""Shared fixtures for browser_mcp tests.

Nothing here starts a real browser: the session is given a fake launcher
that hands out ``FakeBrowser`` / ``FakePage`` objects mimicking the parts of
the Playwright async API the server uses.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
import pytest_asyncio
from fastmcp import FastMCP
from playwright.async_api import Error as PlaywrightError

from browser_mcp.config import ServerConfig
from browser_mcp.session import BrowserSession
from browser_mcp.tools.dispatch import CONSOLE_CAPTURE_SHIM, CONSOLE_COLLECT, ToolDispatcher

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


class FakeConsoleMessage:
    def __init__(self, type: str, text: str):
        self.type = type
        self.text = text


class FakeElement:
    def __init__(self, image: bytes = FAKE_PNG):
        self.image = image

    async def screenshot(self, **kwargs) -> bytes:
        return self.image


class FakePage:
    """Page with a fixed set of selectors present in its DOM."""

    def __init__(self, selectors: set[str] | None = None):
        self.url = "about:blank"
        self.selectors = set(selectors or {"#present", "#name", "#country", "#menu"})
        self.viewport: dict[str, int] | None = None
        self.actions: list[tuple] = []
        self.listeners: dict[str, list[Callable]] = {}
        # script -> value, or callable(page) -> value
        self.scripts: dict[str, Any] = {"1+1": 2}
        self.capture: list[str] | None = None
        self.fail_goto: Exception | None = None
        self.fail_screenshot: Exception | None = None

    def on(self, event: str, callback: Callable) -> None:
        self.listeners.setdefault(event, []).append(callback)

    def emit_console(self, type: str, text: str) -> None:
        for callback in self.listeners.get("console", []):
            callback(FakeConsoleMessage(type, text))

    def script_log(self, level: str, text: str) -> None:
        """Simulate a console call made from an evaluated script."""
        if self.capture is not None:
            self.capture.append(f"[{level}] {text}")
        self.emit_console(level, text)

    async def goto(self, url: str, **kwargs) -> None:
        if self.fail_goto is not None:
            raise self.fail_goto
        self.url = url
        self.actions.append(("goto", url))

    async def set_viewport_size(self, size: dict[str, int]) -> None:
        self.viewport = dict(size)

    async def query_selector(self, selector: str) -> FakeElement | None:
        return FakeElement() if selector in self.selectors else None

    async def screenshot(self, **kwargs) -> bytes:
        if self.fail_screenshot is not None:
            raise self.fail_screenshot
        return FAKE_PNG

    def _require(self, selector: str) -> None:
        if selector not in self.selectors:
            raise PlaywrightError(f"Timeout 30000ms exceeded waiting for locator('{selector}')")

    async def click(self, selector: str, **kwargs) -> None:
        self._require(selector)
        self.actions.append(("click", selector))

    async def wait_for_selector(self, selector: str, **kwargs) -> FakeElement:
        self._require(selector)
        return FakeElement()

    async def fill(self, selector: str, value: str, **kwargs) -> None:
        self._require(selector)
        self.actions.append(("fill", selector, value))

    async def select_option(self, selector: str, value: str, **kwargs) -> list[str]:
        self._require(selector)
        self.actions.append(("select", selector, value))
        return [value]

    async def hover(self, selector: str, **kwargs) -> None:
        self._require(selector)
        self.actions.append(("hover", selector))

    async def evaluate(self, script: str) -> Any:
        if script == CONSOLE_CAPTURE_SHIM:
            self.capture = []
            return None
        if script == CONSOLE_COLLECT:
            logs, self.capture = self.capture or [], None
            return logs
        if script not in self.scripts:
            raise PlaywrightError(f"ReferenceError: {script} is not defined")
        value = self.scripts[script]
        return value(self) if callable(value) else value


class FakeContext:
    def __init__(self, pages: list[FakePage]):
        self.pages = pages


class FakeBrowser:
    def __init__(self, page: FakePage | None = None, existing_page: bool = False):
        self.page = page or FakePage()
        self.contexts = [FakeContext([self.page])] if existing_page else []
        self.connected = True
        self.closed = False
        self.close_error: Exception | None = None
        self.new_page_calls = 0

    def is_connected(self) -> bool:
        return self.connected

    async def new_page(self) -> FakePage:
        self.new_page_calls += 1
        return self.page

    async def close(self) -> None:
        self.closed = True
        self.connected = False
        if self.close_error is not None:
            raise self.close_error


class FakeLauncher:
    """Records every launch and returns a fresh FakeBrowser each time."""

    def __init__(self):
        self.launches: list[dict[str, Any]] = []
        self.browsers: list[FakeBrowser] = []
        self.error: Exception | None = None

    async def __call__(self, options: dict[str, Any]):
        self.launches.append(options)
        if self.error is not None:
            raise self.error
        browser = FakeBrowser()
        self.browsers.append(browser)
        return None, browser

    @property
    def count(self) -> int:
        return len(self.browsers)

    @property
    def browser(self) -> FakeBrowser:
        return self.browsers[-1]


class RecordingNotifier:
    def __init__(self):
        self.events: list[tuple[str, ...]] = []

    async def resource_updated(self, uri: str) -> None:
        self.events.append(("updated", uri))

    async def resource_list_changed(self) -> None:
        self.events.append(("list_changed",))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mcp() -> FastMCP:
    """Create a fresh FastMCP instance for testing."""
    return FastMCP("test-server")


@pytest.fixture
def server_config() -> ServerConfig:
    """Mutable environment config; tests tweak it instead of os.environ."""
    return ServerConfig()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def session(launcher, notifier, server_config):
    session = BrowserSession(
        notifier=notifier,
        launcher=launcher,
        config_factory=lambda: server_config,
    )
    yield session
    await session.close()


@pytest.fixture
def dispatcher(session) -> ToolDispatcher:
    return ToolDispatcher(session)
