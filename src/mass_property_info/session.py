from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from mass_property_info.config import Settings, get_settings, to_ms
from mass_property_info.errors import NavigationTimeoutError
from mass_property_info.extract import extract_property_record
from mass_property_info.form.driver import CascadingFormDriver
from mass_property_info.schema import PropertyQuery, PropertyRecord


logger = logging.getLogger("mpi.session")

CHROMIUM_ARGS = (
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
)


class ChromiumSession:
    """A launched Chromium plus the Playwright driver that owns it."""

    def __init__(self, playwright, browser):
        self._playwright = playwright
        self.browser = browser

    async def new_page(self, *, viewport: dict, user_agent: str):
        context = await self.browser.new_context(viewport=viewport, user_agent=user_agent)
        return await context.new_page()

    async def close(self) -> None:
        try:
            await self.browser.close()
        finally:
            await self._playwright.stop()


async def launch_chromium(settings: Settings) -> ChromiumSession:
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=settings.headless,
            chromium_sandbox=settings.chromium_sandbox,
            args=list(CHROMIUM_ARGS),
        )
    except Exception:
        await playwright.stop()
        raise
    return ChromiumSession(playwright, browser)


BrowserLauncher = Callable[[Settings], Awaitable[ChromiumSession]]


async def close_quietly(browser) -> None:
    try:
        await browser.close()
    except Exception:
        logger.warning("browser close failed", exc_info=True)


class PropertyInfoService:
    """Run one lookup per call in a private, throwaway browser."""

    def __init__(self, settings: Optional[Settings] = None, launch_browser: Optional[BrowserLauncher] = None):
        self.settings = settings or get_settings()
        self._launch_browser = launch_browser or launch_chromium

    async def fetch(self, query: PropertyQuery) -> PropertyRecord:
        settings = self.settings
        browser = await self._launch_browser(settings)
        try:
            page = await browser.new_page(
                viewport=settings.viewport_size, user_agent=settings.user_agent
            )
            await self.open_form(page)
            html = await CascadingFormDriver(page, settings).run(query)
            return extract_property_record(html)
        finally:
            await close_quietly(browser)

    async def open_form(self, page) -> None:
        logger.info("loading form %s", self.settings.form_url)
        try:
            await page.goto(
                self.settings.form_url,
                wait_until="networkidle",
                timeout=to_ms(self.settings.page_load_timeout_s),
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(
                f"Timed out loading {self.settings.form_url}"
            ) from exc
