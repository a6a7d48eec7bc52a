from __future__ import annotations

from typing import Any

from domain.models import BrowserSettings
from infra.browser.playwright_page import PlaywrightPage


class PlaywrightBrowserSession:
    """
    Owns the Playwright driver, one Chromium browser and one page.

    Requires ``playwright`` to be installed and browsers set up via
    ``playwright install chromium``. Call ``close()`` when finished, or use
    the session as an async context manager.
    """

    def __init__(self, settings: BrowserSettings | None = None, *, action_timeout_ms: int = 10_000) -> None:
        self._settings = settings or BrowserSettings()
        self._action_timeout_ms = action_timeout_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._page: PlaywrightPage | None = None

    async def __aenter__(self) -> PlaywrightBrowserSession:
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def launch(self) -> None:
        from playwright.async_api import async_playwright

        settings = self._settings
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=settings.headless,
            slow_mo=settings.slow_mo,
        )
        raw = await self._browser.new_page(
            viewport={"width": settings.viewport_width, "height": settings.viewport_height},
        )
        raw.set_default_timeout(settings.timeout_ms)
        self._page = PlaywrightPage(raw, action_timeout_ms=self._action_timeout_ms)

    async def close(self) -> None:
        if self._page is not None:
            await self._page.raw.close()
            self._page = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def page(self) -> PlaywrightPage:
        if self._page is None:
            raise RuntimeError("Browser not launched. Call launch() first.")
        return self._page

    async def goto(self, url: str) -> PlaywrightPage:
        page = self.page
        await page.raw.goto(url, wait_until="domcontentloaded")
        return page

    async def wait_for_load(self) -> None:
        await self.page.raw.wait_for_load_state("networkidle", timeout=15_000)
