"""Playwright session for one scrape of the reservation portal."""

from __future__ import annotations

from typing import Callable, Optional

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from .config import Settings

LOGGER = structlog.get_logger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]

ExecutableResolver = Callable[[Settings], Optional[str]]


def resolve_executable_path(settings: Settings) -> Optional[str]:
    """Configured Chromium binary, or ``None`` for Playwright's bundled build."""
    return settings.browser_executable_path or None


class PortalSession:
    """One browser, one context, one page; all released on exit."""

    def __init__(self, settings: Settings, executable_resolver: ExecutableResolver = resolve_executable_path):
        self._settings = settings
        self._executable_resolver = executable_resolver
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Playwright page has not been initialised")
        return self._page

    async def __aenter__(self) -> "PortalSession":
        try:
            await self._start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _start(self) -> None:
        executable_path = self._executable_resolver(self._settings)
        LOGGER.info(
            "session.launch.start",
            headless=self._settings.headless,
            executable_path=executable_path,
            args=LAUNCH_ARGS,
        )
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._settings.headless,
            executable_path=executable_path,
            args=LAUNCH_ARGS,
        )
        self._context = await self._browser.new_context()
        self._page = await self._context.new_page()
        self._page.on("pageerror", lambda error: LOGGER.warning("session.page_error", error=str(error)))
        self._page.on("crash", lambda page: LOGGER.error("session.page_crashed", url=page.url))
        self._page.on("console", self._on_console)
        LOGGER.info("session.launch.complete")

    @staticmethod
    def _on_console(message) -> None:
        if message.type == "error":
            LOGGER.debug("session.console_error", text=message.text)

    async def close(self) -> None:
        """Release context, browser and driver; each step runs even if one fails."""
        steps = [
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ]
        for name, closer in steps:
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:
                LOGGER.warning("session.close_failed", resource=name, error=str(exc))
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        LOGGER.debug("session.closed")
