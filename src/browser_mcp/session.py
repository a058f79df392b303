"""
Browser session management.

Owns the single Playwright browser and its active page. Every tool call goes
through ``BrowserSession.ensure_page()``, which decides whether the current
browser can be reused or has to be relaunched:

- launch options are merged (environment first, per-call on top) and screened
  for dangerous flags before anything else happens
- a disconnected browser is discarded
- a browser started with different per-call options is discarded
- if nothing live remains, a new browser is launched on top of
  environment-aware defaults

Console messages from the page are pushed onto a bounded queue and drained
into the ``ArtifactStore`` by a background task, which also emits the
resource-updated notification for ``console://logs``.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from playwright.async_api import Browser, Page, async_playwright

from .artifacts import CONSOLE_LOGS_URI, ArtifactStore, ConsoleLogEntry
from .config import ServerConfig
from .launch_config import check_dangerous, deep_merge, launch_defaults, to_playwright_kwargs
from .notifications import Notifier, NullNotifier

logger = logging.getLogger(__name__)

DEFAULT_CONSOLE_QUEUE_SIZE = 10_000
CLOSE_TIMEOUT_S = 10.0

# (driver, browser). The driver is whatever must be stopped after the browser
# closes; None when the launcher manages it itself.
Launcher = Callable[[dict[str, Any]], Awaitable[tuple[Any, Browser]]]


class BrowserLaunchError(RuntimeError):
    """Raised when the browser could not be started."""


async def launch_chromium(options: dict[str, Any]) -> tuple[Any, Browser]:
    """Start a Playwright driver and launch Chromium with ``options``."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(**to_playwright_kwargs(options))
    except Exception:
        await playwright.stop()
        raise
    return playwright, browser


async def _first_page(browser: Browser) -> Page:
    for context in browser.contexts:
        if context.pages:
            return context.pages[0]
    return await browser.new_page()


class BrowserSession:
    """
    The one live browser plus the artifacts it produces.

    Attributes:
        store: Console log and screenshot storage
        notifier: Receives resource change notifications
        lock: Serialises ensure_page() + the operation that follows it
        launch_count: Number of successful launches, for diagnostics
    """

    def __init__(
        self,
        store: ArtifactStore | None = None,
        notifier: Notifier | None = None,
        launcher: Launcher | None = None,
        config_factory: Callable[[], ServerConfig] = ServerConfig.from_env,
        console_queue_size: int = DEFAULT_CONSOLE_QUEUE_SIZE,
    ):
        self.store = store if store is not None else ArtifactStore()
        self.notifier: Notifier = notifier if notifier is not None else NullNotifier()
        self.browser: Browser | None = None
        self.page: Page | None = None
        self.previous_launch_options: dict[str, Any] | None = None
        self.launch_count = 0
        self.lock = asyncio.Lock()

        self._launcher = launcher or launch_chromium
        self._config_factory = config_factory
        self._driver: Any = None
        self._console_queue: asyncio.Queue[ConsoleLogEntry] = asyncio.Queue(
            maxsize=console_queue_size
        )
        self._console_task: asyncio.Task | None = None

    def is_running(self) -> bool:
        """Check if a connected browser is held."""
        return self.browser is not None and self.browser.is_connected()

    async def ensure_page(
        self,
        launch_options: dict[str, Any] | None = None,
        allow_dangerous: bool = False,
    ) -> Page:
        """
        Return a ready page, launching or relaunching the browser if needed.

        Args:
            launch_options: Per-call launch options (None = caller did not specify)
            allow_dangerous: Permit deny-listed launch args for this call

        Returns:
            The active page of the live browser

        Raises:
            DangerousConfigurationError: merged args contain deny-listed flags
            BrowserLaunchError: the browser could not be started
        """
        config = self._config_factory()
        effective = deep_merge(config.launch_options, launch_options or {})
        check_dangerous(effective, allow_dangerous, global_override=config.allow_dangerous)

        if self.browser is not None and not self.browser.is_connected():
            logger.info("Browser disconnected, discarding session")
            await self._discard()
        elif (
            self.browser is not None
            and launch_options is not None
            and launch_options != self.previous_launch_options
        ):
            logger.info("Launch options changed, relaunching browser")
            await self._discard()

        # Compared against the raw per-call input on the next call, not the merged config.
        self.previous_launch_options = copy.deepcopy(launch_options)

        if self.browser is None:
            await self._launch(deep_merge(launch_defaults(config.container), effective))
        return self.page

    async def close(self) -> None:
        """Close the browser and stop console forwarding."""
        await self._discard()
        if self._console_task is not None:
            self._console_task.cancel()
            try:
                await self._console_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning("Console forwarding had stopped with an error: %r", e)
            self._console_task = None

    async def flush_console(self) -> None:
        """Wait until every queued console event has reached the store."""
        if not self._console_queue.empty():
            self._ensure_console_drain()
        await self._console_queue.join()

    async def _launch(self, options: dict[str, Any]) -> None:
        logger.info(
            f"Launching browser: headless={options.get('headless')}, "
            f"args={options.get('args', [])}"
        )
        try:
            driver, browser = await self._launcher(options)
        except Exception as e:
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

        try:
            page = await _first_page(browser)
        except Exception as e:
            await self._close_quietly(browser, driver)
            raise BrowserLaunchError(f"Failed to open a page: {e}") from e

        page.on("console", self._on_console)
        self._driver, self.browser, self.page = driver, browser, page
        self.launch_count += 1
        self._ensure_console_drain()

    async def _discard(self) -> None:
        browser, driver = self.browser, self._driver
        self.browser = self.page = self._driver = None
        await self._close_quietly(browser, driver)

    @staticmethod
    async def _close_quietly(browser: Browser | None, driver: Any) -> None:
        # The slot is already cleared; a stuck or failing close only leaks the process.
        if browser is not None:
            try:
                await asyncio.wait_for(browser.close(), timeout=CLOSE_TIMEOUT_S)
            except Exception as e:
                logger.warning("Ignoring error while closing browser: %r", e)
        if driver is not None:
            try:
                await asyncio.wait_for(driver.stop(), timeout=CLOSE_TIMEOUT_S)
            except Exception as e:
                logger.warning("Ignoring error while stopping Playwright: %r", e)

    def _on_console(self, msg: Any) -> None:
        entry = ConsoleLogEntry(level=msg.type, text=msg.text)
        try:
            self._console_queue.put_nowait(entry)
        except asyncio.QueueFull:
            logger.warning("Console queue full, dropping message: %s", entry.render())

    def _ensure_console_drain(self) -> None:
        if self._console_task is None or self._console_task.done():
            self._console_task = asyncio.get_running_loop().create_task(self._drain_console())

    async def _drain_console(self) -> None:
        while True:
            entry = await self._console_queue.get()
            try:
                self.store.append_log(entry)
                await self.notifier.resource_updated(CONSOLE_LOGS_URI)
            except Exception as e:
                logger.warning("Failed to forward console message %r: %s", entry.render(), e)
            finally:
                self._console_queue.task_done()
