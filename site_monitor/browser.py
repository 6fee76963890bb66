"""Browser session shared by every check of a run."""

from __future__ import annotations

import os
from pathlib import Path

import structlog
from playwright.async_api import Browser, BrowserContext, ConsoleMessage, Page, Playwright, async_playwright

from .config import MonitorConfig

logger = structlog.get_logger(__name__)


SANDBOX_ARGS = [
    "--no-sandbox",
    # Avoid renderer crashes when /dev/shm is tiny.
    "--disable-dev-shm-usage",
]


def find_chromium_executable(configured: str | None = None) -> str | None:
    if configured and Path(configured).exists():
        return configured

    env_path = os.getenv("CHROMIUM_PATH")
    if env_path and Path(env_path).exists():
        return env_path

    candidates = [
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    ]
    for path in candidates:
        if Path(path).exists():
            return path
    return None


BLOCKED_RESOURCE_TYPES = {"image", "media", "font"}


class BrowserSession:
    """One browser, one context and one page, plus the console errors they emit.

    Console errors caused by requests the session aborted itself are not kept.
    """

    def __init__(self, config: MonitorConfig):
        self.config = config
        self.console_errors: list[str] = []
        self.blocked_urls: set[str] = set()
        self._playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("browser session is not started")
        return self._page

    async def __aenter__(self) -> BrowserSession:
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()

    def _on_console(self, msg: ConsoleMessage) -> None:
        if msg.type != "error":
            return
        location = msg.location or {}
        if location.get("url") in self.blocked_urls:
            return
        self.console_errors.append(msg.text)

    async def _route_filter(self, route) -> None:
        # Reduce bandwidth/CPU for monitoring-style page loads.
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            self.blocked_urls.add(route.request.url)
            await route.abort()
            return
        await route.continue_()

    async def start(self) -> None:
        logger.info("Starting browser session", headless=self.config.browser_headless)

        launch_args: dict = {"headless": self.config.browser_headless}
        if self.config.browser_no_sandbox:
            launch_args["args"] = list(SANDBOX_ARGS)
        chromium_path = find_chromium_executable(self.config.chromium_path)
        if chromium_path:
            launch_args["executable_path"] = chromium_path

        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(**launch_args)
        self.context = await self.browser.new_context(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            user_agent=self.config.user_agent,
        )
        if self.config.block_heavy_resources:
            await self.context.route("**/*", self._route_filter)
        self._page = await self.context.new_page()
        self._page.on("console", self._on_console)

    async def stop(self) -> None:
        logger.info("Stopping browser session")

        if self._page is not None:
            try:
                await self._page.close()
            except Exception as e:
                logger.warning("Failed to close page", error=str(e))
        if self.context is not None:
            try:
                await self.context.close()
            except Exception as e:
                logger.warning("Failed to close browser context", error=str(e))
        if self.browser is not None:
            try:
                await self.browser.close()
            except Exception as e:
                logger.warning("Failed to close browser", error=str(e))
        if self._playwright is not None:
            await self._playwright.stop()
        self._page = None
        self.context = None
        self.browser = None
        self._playwright = None
