"""Playwright browser session hosting the library page."""

from __future__ import annotations

from typing import Any

from ..config import BrowserConfig
from ..logging_conf import configure_logging


class BrowserSession:
    """Own the Playwright driver, browser, context and the single host page."""

    def __init__(self, config: BrowserConfig) -> None:
        self.config = config
        self.logger = configure_logging().bind(component="browser")
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RuntimeError("Browser session has no page; call open() first")
        return self._page

    async def start(self) -> None:
        if self._playwright is not None:
            return
        try:
            from playwright.async_api import async_playwright
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "Browser support requires installing the 'playwright' package."
            ) from exc

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self.config.headless)
        width, height = self.config.viewport_size
        self._context = await self._browser.new_context(
            viewport={"width": width, "height": height},
            locale=self.config.locale,
            is_mobile=self.config.mobile,
            has_touch=self.config.mobile,
        )
        self._page = await self._context.new_page()
        self._page.set_default_navigation_timeout(self.config.navigation_timeout)
        self.logger.info("browser_started", headless=self.config.headless, mobile=self.config.mobile)

    async def open(self, url: str) -> Any:
        await self.start()
        await self._page.goto(url, wait_until="domcontentloaded")
        self.logger.info("page_opened", url=url)
        return self._page

    async def close(self) -> None:
        if self._page is not None:
            await self._page.close()
            self._page = None
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            self.logger.info("browser_closed")

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = ["BrowserSession"]
